"""Factory pattern for creating Mezo client instances."""

from app.adapters.mezo.base import AbstractMezoClient
from app.adapters.mezo.http_client import HttpMezoClient
from app.core.config import MezoSettings, settings


def create_mezo_client(mezo_settings: MezoSettings | None = None) -> AbstractMezoClient:
    """Instantiate the upstream client from configuration.

    Args:
        mezo_settings: Optional override; defaults to global settings.

    Returns:
        AbstractMezoClient: Configured client instance.
    """
    cfg = mezo_settings or settings.mezo
    return HttpMezoClient(
        rpc_url=cfg.rpc_url,
        musd_token_address=cfg.musd_token_address,
        vault_contract_address=cfg.vault_contract_address,
        price_api_url=cfg.price_api_url,
        borrow_contract_address=cfg.borrow_contract_address,
        timeout_seconds=cfg.timeout_seconds,
    )
