"""coursereg CLI: register, log in, and manage courses from a terminal.

Usage:
    coursereg register alice --role TEACHER        # prompts for password
    coursereg login alice                          # prints a bearer token
    export COURSEREG_TOKEN=<token>
    coursereg create-course CS101 "Intro to CS"
    coursereg courses
    coursereg enroll 1
    coursereg drop 1
    coursereg my-registrations
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"
API_PREFIX = "/api/v1"


def _api_url() -> str:
    return os.environ.get("COURSEREG_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    return asyncio.run(coro)


def _require_token(token: Optional[str]) -> str:
    if not token:
        click.secho(
            "Error: --token required (or set COURSEREG_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return token


def _check(r: httpx.Response) -> None:
    """Exit with the server's error detail on a non-2xx response."""
    if r.is_success:
        return
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


_COURSE_COLUMNS = [
    ("ID", "id", 6),
    ("NUMBER", "course_no", 12),
    ("NAME", "course_name", 32),
    ("TEACHER", "teacher_username", 16),
]

_REGISTRATION_COLUMNS = [
    ("COURSE", "course_id", 6),
    ("NUMBER", "course_no", 12),
    ("NAME", "course_name", 32),
]

token_option = click.option(
    "--token", envvar="COURSEREG_TOKEN", help="Bearer token (or set COURSEREG_TOKEN)"
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="coursereg")
def main():
    """coursereg: course registration client."""


@main.command()
@click.argument("username")
@click.option("--role", type=click.Choice(["TEACHER", "STUDENT"]), required=True)
@click.password_option()
def register(username: str, role: str, password: str):
    """Create an account."""
    _run(_register_impl(username, role, password))


async def _register_impl(username: str, role: str, password: str):
    async with _client() as c:
        r = await c.post(
            f"{API_PREFIX}/auth/register",
            json={"username": username, "password": password, "role": role},
        )
        _check(r)
        account = r.json()
        click.secho(f"Registered {account['username']} ({account['role']})", fg="green")


@main.command()
@click.argument("username")
@click.password_option(confirmation_prompt=False)
def login(username: str, password: str):
    """Log in and print a bearer token."""
    _run(_login_impl(username, password))


async def _login_impl(username: str, password: str):
    async with _client() as c:
        r = await c.post(
            f"{API_PREFIX}/auth/login",
            json={"username": username, "password": password},
        )
        _check(r)
        body = r.json()
        click.echo(body["access_token"])
        click.secho(f"Expires in {body['expires_in']}s", fg="yellow", err=True)


@main.command()
@click.option("--mine", is_flag=True, help="Only courses you teach")
@token_option
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON")
def courses(mine: bool, token: Optional[str], as_json: bool):
    """List courses."""
    _run(_courses_impl(mine, token, as_json))


async def _courses_impl(mine: bool, token: Optional[str], as_json: bool):
    path = f"{API_PREFIX}/courses/mine" if mine else f"{API_PREFIX}/courses"
    async with _client(_require_token(token) if mine else token) as c:
        r = await c.get(path)
        _check(r)
        rows = r.json()
    if as_json:
        click.echo(json.dumps(rows, indent=2))
    elif not rows:
        click.echo("No courses.")
    else:
        _print_table(rows, _COURSE_COLUMNS)


@main.command("create-course")
@click.argument("course_no")
@click.argument("course_name")
@token_option
def create_course(course_no: str, course_name: str, token: Optional[str]):
    """Create a course (teachers only)."""
    _run(_create_course_impl(course_no, course_name, _require_token(token)))


async def _create_course_impl(course_no: str, course_name: str, token: str):
    async with _client(token) as c:
        r = await c.post(
            f"{API_PREFIX}/courses",
            json={"course_no": course_no, "course_name": course_name},
        )
        _check(r)
        course = r.json()
        click.secho(f"Course #{course['id']} {course['course_no']} created", fg="green")


@main.command()
@click.argument("course_id", type=int)
@token_option
def enroll(course_id: int, token: Optional[str]):
    """Enroll in a course (students only)."""
    _run(_enroll_impl(course_id, _require_token(token)))


async def _enroll_impl(course_id: int, token: str):
    async with _client(token) as c:
        r = await c.post(f"{API_PREFIX}/registrations", json={"course_id": course_id})
        _check(r)
        reg = r.json()
        click.secho(f"Enrolled in {reg['course_no']}", fg="green")


@main.command()
@click.argument("course_id", type=int)
@token_option
def drop(course_id: int, token: Optional[str]):
    """Drop a course you are enrolled in."""
    _run(_drop_impl(course_id, _require_token(token)))


async def _drop_impl(course_id: int, token: str):
    async with _client(token) as c:
        r = await c.delete(f"{API_PREFIX}/registrations/{course_id}")
        _check(r)
        click.secho(f"Dropped course #{course_id}", fg="green")


@main.command("my-registrations")
@token_option
def my_registrations(token: Optional[str]):
    """List the courses you are enrolled in."""
    _run(_my_registrations_impl(_require_token(token)))


async def _my_registrations_impl(token: str):
    async with _client(token) as c:
        r = await c.get(f"{API_PREFIX}/registrations/mine")
        _check(r)
        rows = r.json()
    if not rows:
        click.echo("No registrations.")
    else:
        _print_table(rows, _REGISTRATION_COLUMNS)


if __name__ == "__main__":
    main()
