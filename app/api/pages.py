"""HTML pages: public landing and registration form, HTTP Basic protected user display."""

from html import escape
from typing import Annotated

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse

from app.api.v1.auth import get_auth_service, get_current_identity, store_unavailable
from app.api.v1.users import validate_credentials
from app.core.exceptions import StoreUnavailableError, UsernameTakenError
from app.schemas.user import AuthenticatedIdentity
from app.services.auth_service import AuthService

router = APIRouter()

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<h1>{title}</h1>
{body}
</body>
</html>
"""

REGISTER_FORM = """{error}
<form method="post" action="/register">
  <label>Username <input type="text" name="username" value="{username}"></label><br>
  <label>Password <input type="password" name="password"></label><br>
  <button type="submit">Register</button>
</form>
"""


def _page(title: str, body: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    return HTMLResponse(
        content=PAGE_TEMPLATE.format(title=escape(title), body=body),
        status_code=status_code,
    )


def _register_page(
    username: str = "", error: str | None = None, status_code: int = status.HTTP_200_OK
) -> HTMLResponse:
    error_html = f'<p class="error">{escape(error)}</p>' if error else ""
    body = REGISTER_FORM.format(error=error_html, username=escape(username))
    return _page("Register", body, status_code)


@router.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
    """Public landing page."""
    return _page(
        "Site users",
        '<p><a href="/register">Register</a> | <a href="/display">Registered users</a></p>',
    )


@router.get("/register", response_class=HTMLResponse)
def register_form() -> HTMLResponse:
    """Empty registration form."""
    return _register_page()


@router.post("/register", response_model=None)
def register_submit(
    username: Annotated[str, Form()],
    password: Annotated[str, Form()],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> HTMLResponse | RedirectResponse:
    """Register from the form and redirect to the user display."""
    error = validate_credentials(username, password)
    if error:
        return _register_page(username, error, status.HTTP_422_UNPROCESSABLE_ENTITY)
    try:
        service.register(username, password)
    except UsernameTakenError as e:
        return _register_page(username, e.message, status.HTTP_409_CONFLICT)
    except StoreUnavailableError:
        raise store_unavailable()
    return RedirectResponse(url="/display", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/display", response_class=HTMLResponse)
def display(
    identity: Annotated[AuthenticatedIdentity, Depends(get_current_identity)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> HTMLResponse:
    """Table of every registered user and their roles (authenticated only)."""
    try:
        users = service.all_users()
    except StoreUnavailableError:
        raise store_unavailable()
    rows = "\n".join(
        "<tr><td>{}</td><td>{}</td><td>{}</td></tr>".format(
            u.id,
            escape(u.username),
            escape(", ".join(sorted(r.role for r in u.roles))),
        )
        for u in users
    )
    body = (
        f"<p>Signed in as {escape(identity.username)}</p>\n"
        "<table>\n<tr><th>Id</th><th>Username</th><th>Roles</th></tr>\n"
        f"{rows}\n</table>"
    )
    return _page("Registered users", body)
