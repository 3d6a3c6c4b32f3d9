"""Client toolkit for the Space API.

Example usage:
    from client import SpaceAPIClient, SpacePage, UserSession

    api = SpaceAPIClient("http://localhost:3000")
    page = SpacePage(api, "demo", UserSession(connected=True, email="a@b.com"))
    page.load()
"""
from .api import NetworkError, SpaceAPIClient
from .guard import (
    AuthState, EntitlementGuard, GuardError, NotConnected, Notification,
    ProfileMissing, StakeInsufficient, UserSession
)
from .profile import ProfileLoader
from .sections import (
    HangoutSection, HangoutView, LendItemView, LendSection, RequestSection,
    RequestView, Section, ShopSection, ShopView, SpaceDirectory, SpaceView
)
from .space_page import SpacePage, default_section

__all__ = [
    'SpaceAPIClient',
    'NetworkError',
    'ProfileLoader',
    'AuthState',
    'EntitlementGuard',
    'GuardError',
    'NotConnected',
    'ProfileMissing',
    'StakeInsufficient',
    'Notification',
    'UserSession',
    'Section',
    'ShopSection',
    'LendSection',
    'RequestSection',
    'HangoutSection',
    'SpaceDirectory',
    'ShopView',
    'LendItemView',
    'RequestView',
    'HangoutView',
    'SpaceView',
    'SpacePage',
    'default_section',
]
