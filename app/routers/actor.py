# app/routers/actor.py
"""
Acting user, as forwarded by the upstream auth gateway.
The gateway authenticates the caller and sets X-Actor-Id / X-Actor-Role;
this service trusts those headers and only checks roles.
"""

from dataclasses import dataclass
from fastapi import Depends, Header, HTTPException, status


@dataclass
class Actor:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_actor(
    x_actor_id: int = Header(..., description="Authenticated user id"),
    x_actor_role: str = Header("customer", description="admin | customer"),
) -> Actor:
    if x_actor_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user")
    return Actor(user_id=x_actor_id, role=x_actor_role.lower())


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access forbidden for this role")
    return actor
