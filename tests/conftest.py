"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING, Any
from xml.etree.ElementTree import fromstring

import pytest

from apiplan.jmx import JMXGenerator
from apiplan.jmx.generator import XML_HEADER
from apiplan.schema import ApiTest
from apiplan.settings import CompilerSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from xml.etree.ElementTree import Element

if TYPE_CHECKING:
    from apiplan.schema import Environment


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> CompilerSettings:
    """Provide compiler settings with the built-in defaults.

    Environment variables of the test process are cleared so that a
    developer's `APIPLAN_*` configuration never leaks into tests.
    """
    for name in CompilerSettings.model_fields:
        monkeypatch.delenv(f'APIPLAN_{name.upper()}', raising=False)

    return CompilerSettings()


@pytest.fixture
def make_test() -> 'Callable[..., ApiTest]':
    """Provide a factory of single-scenario tests.

    The factory accepts request field bags as positional arguments and
    scenario fields as keyword arguments.
    """
    def make(*requests: dict[str, Any], **scenario: Any) -> ApiTest:  # noqa: ANN401
        return ApiTest.model_validate({
            'id': 'test-1',
            'name': 'Smoke',
            'projectId': 'project-1',
            'scenarioDefinition': [{
                'name': 'S1',
                **scenario,
                'requests': list(requests),
            }],
        })

    return make


@pytest.fixture
def compile_tree(settings: CompilerSettings) -> 'Callable[..., Element]':
    """Provide a compiler returning the parsed document tree of a test."""
    def compile_(test: ApiTest,
                 environments: 'Mapping[str, Environment] | None' = None) -> 'Element':
        document = JMXGenerator(environments=environments, settings=settings).compile(test)
        assert document is not None
        assert document.xml.startswith(XML_HEADER)

        return fromstring(document.xml.removeprefix(XML_HEADER))

    return compile_


@pytest.fixture
def props() -> 'Callable[[Element], dict[str, str]]':
    """Provide a reader of the scalar properties of a document element.

    Unset property text is returned as an empty string.
    """
    def read(element: 'Element') -> dict[str, str]:
        return {
            child.get('name', ''): child.text or ''
            for child in element
            if child.tag in {'stringProp', 'boolProp', 'intProp'}
        }

    return read


@pytest.fixture
def subtree() -> 'Callable[[Element, Element], Element]':
    """Provide a lookup of the hash tree following a test element."""
    def find(root: 'Element', element: 'Element') -> 'Element':
        for parent in root.iter():
            siblings = list(parent)
            for index, sibling in enumerate(siblings):
                if sibling is element:
                    return siblings[index + 1]

        raise LookupError(element.tag)

    return find
