"""
Account endpoints of the Bitfinex v2 API: user info, wallets, ledgers,
API key permissions and deposit addresses. All of them are authenticated.
"""

from typing import Dict, List, Optional, Union

from .models import (
    DepositAddress,
    DepositMethod,
    LedgerCategory,
    LedgerEntry,
    Permission,
    UserInfo,
    Wallet,
    WalletType,
)


class AccountEndpointsMixin:
    """Account endpoints; mixed into ``BitfinexClient``."""

    async def get_user_info(self) -> UserInfo:
        """Get information about the account owning the API key."""
        data = (await self.execute_authenticated("auth/r/info/user")).unwrap()
        return self._decode(UserInfo, data)

    async def get_wallets(self) -> List[Wallet]:
        """Get all wallets of the account."""
        data = (await self.execute_authenticated("auth/r/wallets")).unwrap()
        return self._decode_list(Wallet, data)

    async def get_ledgers(
        self,
        ccy: str,
        limit: Optional[int] = None,
        category: Union[LedgerCategory, int] = LedgerCategory.INTEREST,
    ) -> List[LedgerEntry]:
        """
        Get ledger entries of a currency.

        Args:
            ccy: Currency (e.g. "USD")
            limit: Number of entries to return (max 2500)
            category: Ledger category to filter by

        Returns:
            Ledger entries, newest first
        """
        params = {"limit": limit} if limit is not None else None
        body = {"category": int(LedgerCategory(category))}

        data = (
            await self.execute_authenticated(
                f"auth/r/ledgers/{ccy}/hist", body, params=params
            )
        ).unwrap()
        return self._decode_list(LedgerEntry, data)

    async def get_key_permissions(self) -> Dict[str, Permission]:
        """Get the permissions of the API key, keyed by scope (orders, wallets, ...)."""
        data = (await self.execute_authenticated("auth/r/permissions")).unwrap()
        permissions = self._decode_list(Permission, data)
        return {permission.scope: permission for permission in permissions}

    async def get_deposit_addresses(
        self,
        wallet: Union[WalletType, str] = WalletType.EXCHANGE,
        method: Union[DepositMethod, str] = DepositMethod.TETHERUSL,
    ) -> List[DepositAddress]:
        """
        Get the deposit address of a wallet for a deposit method.

        Args:
            wallet: Wallet to deposit into
            method: Deposit method (e.g. "bitcoin", "tetherusl")

        Returns:
            Deposit addresses
        """
        body = {
            "wallet": WalletType(wallet).value,
            "method": DepositMethod(method).value,
            "op_renew": 0,
        }

        data = (
            await self.execute_authenticated("auth/w/deposit/address", body)
        ).unwrap()
        rows = self._notification_data(data)
        if rows and not isinstance(rows[0], list):
            rows = [rows]
        return self._decode_list(DepositAddress, rows)
