"""Request dependencies resolved from application state."""

from litestar.datastructures import State

from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.services.bitrix24_client import Bitrix24Client
from bitrix24_placement_server.services.install import InstallService
from bitrix24_placement_server.services.placement import PlacementService
from bitrix24_placement_server.services.settings_store import SettingsStore


def provide_config(state: State) -> Settings:
    return state.config


def provide_settings_store(state: State) -> SettingsStore:
    return state.settings_store


def provide_bitrix24_client(state: State) -> Bitrix24Client:
    return Bitrix24Client(state.settings_store, state.http_client, state.config)


def provide_install_service(state: State, bitrix24_client: Bitrix24Client) -> InstallService:
    return InstallService(state.settings_store, bitrix24_client, state.config)


def provide_placement_service(bitrix24_client: Bitrix24Client) -> PlacementService:
    return PlacementService(bitrix24_client)
