"""Request identity resolution.

The API gateway in front of this service authenticates users and forwards the
identity as ``X-User-Id`` / ``X-User-Roles`` headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Depends, Header, HTTPException, Request, status


@dataclass(frozen=True)
class AuthenticatedUser:
	id: str
	roles: Tuple[str, ...] = ()

	def has_role(self, role: str) -> bool:
		return role in self.roles


def _parse_roles(raw: Optional[str]) -> Tuple[str, ...]:
	if not raw:
		return ()
	return tuple(part.strip() for part in raw.split(",") if part.strip())


def resolve_actor_id(request: Request) -> str:
	"""Return the moderation identity for a request.

	Authenticated users are keyed by their id; anonymous sessions fall back to the
	client address so they still get their own ledger partition.
	"""
	user_id = (request.headers.get("X-User-Id") or "").strip()
	if user_id:
		return user_id
	client = request.client
	return f"anon:{client.host if client else 'unknown'}"


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
) -> AuthenticatedUser:
	if not x_user_id or not x_user_id.strip():
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthenticated")
	return AuthenticatedUser(id=x_user_id.strip(), roles=_parse_roles(x_user_roles))


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.has_role("admin"):
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")
