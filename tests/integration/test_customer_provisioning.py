"""
Integration Tests for Customer Provisioning

Runs BillingService against a real UserRepository and SQLite session.

Verifies:
- A request that loses the provisioning race returns the stored customer
- The customer id is visible in the same session right after provisioning
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from paywall.domain.result import Ok
from paywall.infrastructure.db.models import User
from paywall.infrastructure.db.repositories import UserRepository
from paywall.infrastructure.payments.stripe_service import BillingService


async def _session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'paywall.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(User.__table__.create)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _create_user(factory) -> str:
    async with factory() as session:
        user = User(email="reader@example.com", name="Reader")
        session.add(user)
        await session.commit()
        return str(user.id)


class TestCustomerProvisioning:

    @pytest.mark.asyncio
    async def test_lost_race_returns_stored_customer(self, tmp_path, billing_config):
        """The loser deletes its duplicate and returns the winner's id."""
        engine, factory = await _session_factory(tmp_path)
        user_id = await _create_user(factory)

        try:
            async with factory() as session:
                users = UserRepository(session)
                # Loaded before the concurrent write, so the cached row has no customer
                assert (await users.get_user_by_id(user_id)).customer_id is None

                async with factory() as other:
                    assert await UserRepository(other).set_customer_id_if_absent(user_id, "cus_winner")
                    await other.commit()

                service = BillingService(billing_config, users)
                with patch.object(stripe.Customer, "create", return_value=SimpleNamespace(id="cus_loser")), \
                     patch.object(stripe.Customer, "delete") as delete:
                    result = await service.create_customer_id(user_id)

                assert result == Ok("cus_winner")
                delete.assert_called_once_with("cus_loser", api_key="sk_test_dummy")
                assert (await users.get_user_by_id(user_id)).customer_id == "cus_winner"
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_checkout_sees_new_customer(self, tmp_path, billing_config):
        """Checkout in the same request finds the customer just provisioned."""
        engine, factory = await _session_factory(tmp_path)
        user_id = await _create_user(factory)
        checkout = SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/c/cs_1")

        try:
            async with factory() as session:
                service = BillingService(billing_config, UserRepository(session))

                with patch.object(stripe.Customer, "create", return_value=SimpleNamespace(id="cus_new")), \
                     patch.object(stripe.checkout.Session, "create", return_value=checkout) as create:
                    assert await service.create_customer_id(user_id) == Ok("cus_new")
                    result = await service.get_subscription_checkout_url(user_id, "price_premium")

                assert result == Ok("https://checkout.stripe.com/c/cs_1")
                assert create.call_args.kwargs["customer"] == "cus_new"
        finally:
            await engine.dispose()
