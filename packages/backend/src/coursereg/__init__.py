"""Course registration backend.

Teachers publish courses, students enroll in them. Identity travels in
signed, self-contained tokens; every mutating operation re-checks role
and ownership against the identity resolved for that request.
"""

__version__ = "0.1.0"
