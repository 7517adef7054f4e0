"""Authentication and authorization.

Learn: one authentication path, fully stateless:
username/password → signed JWT → Identity on every later request.
Nothing about issued tokens is stored server-side.

Authorization is two explicit calls made by the service layer:
require_role() first, then require_owner() once the target record
has been loaded (so a missing record reports NotFound, not NotOwner).
"""
