"""
Example: Session Guardian Usage

This example shows how an application hands freshly issued credentials to the
guardian and then issues concurrent authenticated requests while renewal
happens in the background.
"""

import asyncio
import logging

from session_guardian_sdk import (
    SessionGuardian,
    SessionGuardianConfiguration,
)


async def main():
    """Main async example."""
    logging.basicConfig(level=logging.DEBUG)

    config = SessionGuardianConfiguration(
        base_url="https://invoicing.example.com/api",
        language="en",
    )

    async with SessionGuardian(config=config) as guardian:

        def on_renewed(token: str) -> None:
            print("Access token renewed")

        def on_failed() -> None:
            print("Session is over, please log in again")

        guardian.on_renewed(on_renewed)
        guardian.on_renewal_failed(on_failed)

        # Credentials come from your login flow
        login = await guardian.post(
            "/auth/login",
            json_data={"email": "YOUR_EMAIL", "password": "YOUR_PASSWORD"},
            require_auth=False,
        )
        data = login.get("data", login)
        guardian.start_session(
            data["token"],
            renewal_token=data.get("refreshToken"),
            anti_forgery_token=data.get("csrfToken"),
        )

        # Concurrent requests share a single renewal if the token is stale
        invoices, customers = await asyncio.gather(
            guardian.get("/invoices"),
            guardian.get("/customers"),
        )
        print(f"Invoices: {invoices}")
        print(f"Customers: {customers}")

        # State-changing calls carry the anti-forgery header automatically
        await guardian.post("/customers", json_data={"name": "ACME"})

        guardian.end_session()


if __name__ == "__main__":
    asyncio.run(main())
