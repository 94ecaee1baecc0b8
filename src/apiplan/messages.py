"""Validation message codes and the message catalog.

Validation never produces display text directly. Every failure carries
a stable dotted code (for example `api_test.request.input_url`) which is
a lookup key into a localized message catalog. Catalogs are YAML files
with nested mappings mirroring the dotted code structure.
"""

from enum import StrEnum
from functools import cache
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from yaml import safe_load

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_LOCALE = 'en'


class Message(StrEnum):
    """Stable codes of validation failures."""

    INPUT_NAME = 'api_test.input_name'
    SELECT_PROJECT = 'api_test.select_project'

    INPUT_URL = 'api_test.request.input_url'
    URL_INVALID = 'api_test.request.url_invalid'
    INPUT_PATH = 'api_test.request.input_path'
    CONFIGURE_ENVIRONMENT = 'api_test.request.please_configure_environment_in_scenario'

    DUBBO_INPUT_INTERFACE = 'api_test.request.dubbo.input_interface'
    DUBBO_INPUT_METHOD = 'api_test.request.dubbo.input_method'
    DUBBO_INPUT_CONFIG_CENTER = 'api_test.request.dubbo.input_config_center'
    DUBBO_INPUT_REGISTRY_CENTER = 'api_test.request.dubbo.input_registry_center'
    DUBBO_INPUT_CONSUMER_SERVICE = 'api_test.request.dubbo.input_consumer_service'


def _flatten(tree: dict[str, Any], prefix: str = '') -> dict[str, str]:
    """Flatten a nested catalog mapping into dotted keys."""
    messages: dict[str, str] = {}
    for key, value in tree.items():
        code = f'{prefix}{key}'
        if isinstance(value, dict):
            messages.update(_flatten(value, f'{code}.'))
        elif value is not None:
            messages[code] = str(value)

    return messages


class MessageCatalog:
    """Read-only mapping of message codes to display text.

    Unknown codes resolve to the code itself, so a missing translation
    never hides a failure.
    """

    def __init__(self, messages: dict[str, str], *,
                 fallback: 'MessageCatalog | None' = None) -> None:
        """Initialize a catalog.

        Args:
            messages: Display texts keyed by dotted codes.
            fallback: Catalog consulted for codes missing here.
        """
        self.messages = messages
        self.fallback = fallback

    def lookup(self, code: str) -> str:
        """Resolve a code into display text.

        Args:
            code: Dotted message code.

        Returns:
            Localized text, or the code when no catalog knows it.
        """
        if (message := self.messages.get(code)) is not None:
            return message

        if self.fallback is not None:
            return self.fallback.lookup(code)

        return code

    @classmethod
    def from_yaml(cls, content: str, *,
                  fallback: 'MessageCatalog | None' = None) -> 'MessageCatalog':
        """Build a catalog from YAML text.

        Args:
            content: YAML document with nested message mappings.
            fallback: Catalog consulted for codes missing here.

        Returns:
            A message catalog.
        """
        tree = safe_load(content) or {}
        if not isinstance(tree, dict):
            raise ValueError('Message catalog must be a mapping')

        return cls(_flatten(tree), fallback=fallback)

    @classmethod
    def from_file(cls, path: 'Path') -> 'MessageCatalog':
        """Build a catalog from a YAML file, falling back to the default locale."""
        return cls.from_yaml(path.read_text(encoding='utf-8'), fallback=get_catalog())


@cache
def get_catalog(locale: str = DEFAULT_LOCALE) -> MessageCatalog:
    """Return the bundled catalog for a locale.

    Catalogs of other locales fall back to the default locale; unknown
    locales resolve to the default catalog.

    Args:
        locale: Locale name, for example `en` or `zh_CN`.

    Returns:
        A cached message catalog.
    """
    resource = files('apiplan').joinpath('catalogs', f'{locale}.yaml')
    if locale == DEFAULT_LOCALE or not resource.is_file():
        default = files('apiplan').joinpath('catalogs', f'{DEFAULT_LOCALE}.yaml')
        return MessageCatalog.from_yaml(default.read_text(encoding='utf-8'))

    return MessageCatalog.from_yaml(
        resource.read_text(encoding='utf-8'),
        fallback=get_catalog(DEFAULT_LOCALE),
    )
