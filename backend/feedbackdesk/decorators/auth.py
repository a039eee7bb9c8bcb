from functools import wraps
from typing import Optional
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from feedbackdesk.services.policy import has_permissions, assert_department_access


def require_permissions(*codes: str, department_arg: Optional[str] = None):
    """Reject the request unless the admin token carries every code.

    department_arg names a path parameter holding a department code; when given,
    the admin must also be allowed to act on that department.
    """
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description='Missing permission')
            if department_arg and department_arg in kwargs:
                assert_department_access(kwargs[department_arg])
            return fn(*args, **kwargs)
        return wrapper
    return outer
