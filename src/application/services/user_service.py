from typing import Optional

from loguru import logger

from src.application.repositories import AbstractUnitOfWork, AbstractUserRepository
from src.application.services.transactions import run_in_transaction
from src.domain.common import AccountMode, UserRole
from src.domain.entities import User
from src.domain.errors import NotFoundError, ValidationError


class UserService:
    def __init__(self, user_repo: AbstractUserRepository, unit_of_work: AbstractUnitOfWork):
        self.user_repo = user_repo
        self.unit_of_work = unit_of_work

    async def register(
        self,
        name: str,
        email: str,
        role: UserRole,
        mode_compte: AccountMode = AccountMode.BASIC,
        company_name: Optional[str] = None,
    ) -> User:
        # Role and plan are fixed here; nothing changes them later
        if await self.user_repo.get_by_email(email):
            raise ValidationError("email", "This email is already registered.")

        async def operation() -> User:
            return await self.user_repo.add(
                User(name=name, email=email, role=role, mode_compte=mode_compte, company_name=company_name)
            )

        user = await run_in_transaction(self.unit_of_work, operation, conflict_field="email", retries=0)
        logger.info(f"User {user.id} registered as {role.value}")
        return user

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user
