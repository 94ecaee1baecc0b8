"""Scenario model: tests, scenarios, requests and their value records.

Defines tolerant Pydantic records describing API tests. Records are
built from partial field bags, validate into uniform results keyed by
message codes, and are consumed by the JMeter document compiler.
"""

from .checks import Assertions, DurationAssertion, RegexAssertion, TextAssertion
from .environments import Environment
from .extractors import Extract, JSONPathExtractor, RegexExtractor, XPathExtractor
from .plans import ApiTest
from .requests import DubboRequest, HttpRequest, Request, make_request
from .scenarios import Scenario
from .values import Body, ConfigCenter, ConsumerAndService, DubboConfig, KeyValue, RegistryCenter

__all__ = (
    'ApiTest',
    'Assertions',
    'Body',
    'ConfigCenter',
    'ConsumerAndService',
    'DubboConfig',
    'DubboRequest',
    'DurationAssertion',
    'Environment',
    'Extract',
    'HttpRequest',
    'JSONPathExtractor',
    'KeyValue',
    'RegexAssertion',
    'RegexExtractor',
    'RegistryCenter',
    'Request',
    'Scenario',
    'TextAssertion',
    'XPathExtractor',
    'make_request',
)
