"""Generic JMeter document elements and their markup serialization.

A JMeter document is a tree of tagged elements. Test elements (plans,
thread groups, samplers, assertions...) never nest directly: each one is
followed by a sibling `hashTree` holding its children. `TestElement`
models this pairing, so callers only `put` children into a test element
and the serializer emits the companion hash trees.

Properties are child elements named after the property type
(`stringProp`, `boolProp`, `intProp`, `elementProp`, `collectionProp`)
with a `name` attribute.
"""

from typing import TYPE_CHECKING, Self
from xml.etree.ElementTree import Element as XMLElement
from xml.etree.ElementTree import indent, tostring

if TYPE_CHECKING:
    from collections.abc import Mapping

XML_INDENT = '  '


def _as_text(value: object) -> str | None:
    """Render a property value as element text."""
    if value is None:
        return None

    if isinstance(value, bool):
        return 'true' if value else 'false'

    return str(value)


class Element:
    """Tagged element with attributes, optional text and ordered children."""

    def __init__(self, tag: str, attributes: 'Mapping[str, str] | None' = None,
                 text: object = None) -> None:
        """Initialize an element.

        Args:
            tag: Element tag.
            attributes: Element attributes, in output order.
            text: Optional text content.
        """
        self.tag = tag
        self.attributes = dict(attributes or {})
        self.text = _as_text(text)
        self.children: list[Element] = []

    def add[T: Element](self, element: T) -> T:
        """Append a child element and return it."""
        self.children.append(element)
        return element

    def find_prop(self, name: str) -> 'Element | None':
        """Find a direct property child by its name."""
        for child in self.children:
            if child.tag.endswith('Prop') and child.attributes.get('name') == name:
                return child

        return None

    def _set_prop(self, tag: str, name: str, value: object) -> 'Element':
        """Set a scalar property, replacing a previous value of the same name."""
        if (prop := self.find_prop(name)) is not None and prop.tag == tag:
            prop.text = _as_text(value)
            return prop

        return self.add(Element(tag, {'name': name}, value))

    def string_prop(self, name: str, value: object = None) -> 'Element':
        """Set a string property; an unset value is written as empty text."""
        return self._set_prop('stringProp', name, value)

    def bool_prop(self, name: str, value: bool | None, default: bool = False) -> 'Element':  # noqa: FBT001, FBT002
        """Set a boolean property, using `default` for an unset value."""
        return self._set_prop('boolProp', name, default if value is None else value)

    def int_prop(self, name: str, value: int | None, default: int = 0) -> 'Element':
        """Set an integer property, using `default` for an unset value."""
        return self._set_prop('intProp', name, default if value is None else int(value))

    def collection_prop(self, name: str) -> 'Element':
        """Append an empty collection property and return it."""
        return self.add(Element('collectionProp', {'name': name}))

    def element_prop(self, name: str, element_type: str,
                     attributes: 'Mapping[str, str] | None' = None) -> 'Element':
        """Append a nested element property and return it."""
        return self.add(Element('elementProp', {
            'name': name,
            'elementType': element_type,
            **(attributes or {}),
        }))

    def to_etree(self) -> XMLElement:
        """Convert the element and its children into an ElementTree node."""
        node = XMLElement(self.tag, self.attributes)
        node.text = self.text
        for child in self.children:
            child.append_to(node)

        return node

    def append_to(self, parent: XMLElement) -> None:
        """Append the ElementTree form of the element to a parent node."""
        parent.append(self.to_etree())

    def to_xml(self) -> str:
        """Serialize the element tree into indented markup text."""
        node = self.to_etree()
        indent(node, space=XML_INDENT)

        return tostring(node, encoding='unicode')


class HashTree(Element):
    """Container of test elements."""

    def __init__(self) -> None:
        """Initialize an empty hash tree."""
        super().__init__('hashTree')


class TestElement(Element):
    """JMeter test element with a companion hash tree of children."""

    __test__ = False

    def __init__(self, tag: str, guiclass: str, testclass: str,
                 testname: str | None = None, *, enabled: bool = True) -> None:
        """Initialize a test element.

        Args:
            tag: Element tag, usually equal to the test class.
            guiclass: JMeter GUI class name.
            testclass: JMeter test class name.
            testname: Display name of the element.
            enabled: Whether JMeter runs the element.
        """
        super().__init__(tag, {
            'guiclass': guiclass,
            'testclass': testclass,
            'testname': '' if testname is None else testname,
            'enabled': 'true' if enabled else 'false',
        })
        self.hash_tree = HashTree()

    @property
    def name(self) -> str:
        """Display name of the element."""
        return self.attributes['testname']

    def put(self, element: 'TestElement') -> Self:
        """Add a child test element to the companion hash tree."""
        self.hash_tree.add(element)
        return self

    @property
    def elements(self) -> list['TestElement']:
        """Child test elements, in order."""
        return [
            child for child in self.hash_tree.children
            if isinstance(child, TestElement)
        ]

    def append_to(self, parent: XMLElement) -> None:
        """Append the element followed by its hash tree."""
        parent.append(self.to_etree())
        parent.append(self.hash_tree.to_etree())


class DocumentRoot(Element):
    """Document root holding a single top-level hash tree."""

    def __init__(self, tag: str, attributes: 'Mapping[str, str] | None' = None) -> None:
        """Initialize a document root.

        Args:
            tag: Root element tag.
            attributes: Root element attributes.
        """
        super().__init__(tag, attributes)
        self.hash_tree = self.add(HashTree())

    def put(self, element: TestElement) -> Self:
        """Add a top-level test element."""
        self.hash_tree.add(element)
        return self

    @property
    def elements(self) -> list[TestElement]:
        """Top-level test elements, in order."""
        return [
            child for child in self.hash_tree.children
            if isinstance(child, TestElement)
        ]
