"""Typed JMeter test elements emitted by the compiler.

Each class fixes the tag, GUI class and test class of a JMeter element
and writes the properties JMeter expects for it. Elements are built
from plain values; translating scenario records into these values is
the job of the generator.
"""

from enum import IntFlag
from typing import TYPE_CHECKING, NamedTuple

from apiplan.names import as_text

from .elements import DocumentRoot, Element, TestElement

if TYPE_CHECKING:
    from collections.abc import Iterable

    from apiplan.schema import DubboRequest, KeyValue
    from apiplan.settings import CompilerSettings

DUBBO_SAMPLE_CLASS = 'io.github.ningyu.jmeter.plugin.dubbo.sample.DubboSample'
DUBBO_SAMPLE_GUI = 'io.github.ningyu.jmeter.plugin.dubbo.gui.DubboSampleGui'


def java_hash(value: str) -> int:
    """Compute the `String.hashCode` of a value as a signed 32-bit integer.

    JMeter keys the test strings of a response assertion by this hash.

    Args:
        value: String to hash.

    Returns:
        Hash of the UTF-16 code units of the string.
    """
    result = 0
    units = value.encode('utf-16-be')
    for index in range(0, len(units), 2):
        result = (31 * result + int.from_bytes(units[index:index + 2])) & 0xFFFFFFFF

    if result >= 0x80000000:  # noqa: PLR2004
        result -= 0x100000000

    return result


class AssertionCondition(IntFlag):
    """Pattern matching rules of a response assertion."""

    MATCH = 1
    CONTAINS = 2
    NOT = 4
    EQUALS = 8
    SUBSTRING = 16
    OR = 32


class HttpTarget(NamedTuple):
    """Resolved address and method of an HTTP sampler."""

    method: str
    domain: str
    port: str
    protocol: str
    path: str


class SamplerArgument(NamedTuple):
    """Argument of an HTTP sampler, a parameter or a raw body."""

    name: str
    value: str
    encode: bool = True


class JMeterTestPlan(DocumentRoot):
    """Root of a JMeter document."""

    def __init__(self, settings: 'CompilerSettings') -> None:
        """Initialize the document root with the configured versions."""
        super().__init__('jmeterTestPlan', {
            'version': settings.jmx_version,
            'properties': settings.jmx_properties,
            'jmeter': settings.jmeter_version,
        })


class TestPlan(TestElement):
    """Top-level test plan."""

    def __init__(self, name: str) -> None:
        super().__init__('TestPlan', 'TestPlanGui', 'TestPlan', name)

        self.string_prop('TestPlan.comments', '')
        self.bool_prop('TestPlan.functional_mode', value=False)
        self.bool_prop('TestPlan.tearDown_on_shutdown', value=True)
        self.bool_prop('TestPlan.serialize_threadgroups', value=False)

        variables = self.element_prop('TestPlan.user_defined_variables', 'Arguments', {
            'guiclass': 'ArgumentsPanel',
            'testclass': 'Arguments',
            'testname': 'User Defined Variables',
            'enabled': 'true',
        })
        variables.collection_prop('Arguments.arguments')

        self.string_prop('TestPlan.user_define_classpath', '')


class ThreadGroup(TestElement):
    """Group of virtual users running the samplers of one scenario."""

    def __init__(self, name: str, num_threads: int = 1, ramp_time: int = 1,
                 loops: int = 1) -> None:
        """Initialize a thread group.

        Args:
            name: Thread group name.
            num_threads: Number of virtual users.
            ramp_time: Ramp-up period in seconds.
            loops: Iterations per user, `-1` loops forever.
        """
        super().__init__('ThreadGroup', 'ThreadGroupGui', 'ThreadGroup', name)

        self.string_prop('ThreadGroup.on_sample_error', 'continue')

        controller = self.element_prop('ThreadGroup.main_controller', 'LoopController', {
            'guiclass': 'LoopControlPanel',
            'testclass': 'LoopController',
            'testname': 'Loop Controller',
            'enabled': 'true',
        })
        controller.bool_prop('LoopController.continue_forever', value=False)
        controller.string_prop('LoopController.loops', loops)

        self.string_prop('ThreadGroup.num_threads', num_threads)
        self.string_prop('ThreadGroup.ramp_time', ramp_time)
        self.bool_prop('ThreadGroup.scheduler', value=False)
        self.string_prop('ThreadGroup.duration', '')
        self.string_prop('ThreadGroup.delay', '')


class Arguments(TestElement):
    """User defined variables."""

    def __init__(self, name: str, args: 'Iterable[KeyValue]') -> None:
        super().__init__('Arguments', 'ArgumentsPanel', 'Arguments', name)

        collection = self.collection_prop('Arguments.arguments')
        for arg in args:
            prop = collection.element_prop(as_text(arg.name), 'Argument')
            prop.string_prop('Argument.name', arg.name)
            prop.string_prop('Argument.value', arg.value)
            prop.string_prop('Argument.metadata', '=')


class HeaderManager(TestElement):
    """HTTP headers added to samplers in scope."""

    def __init__(self, name: str, headers: 'Iterable[KeyValue]') -> None:
        super().__init__('HeaderManager', 'HeaderPanel', 'HeaderManager', name)

        collection = self.collection_prop('HeaderManager.headers')
        for header in headers:
            prop = collection.element_prop('', 'Header')
            prop.string_prop('Header.name', header.name)
            prop.string_prop('Header.value', header.value)


class HTTPSamplerArguments(Element):
    """Arguments of an HTTP sampler: query parameters or body parts."""

    def __init__(self, args: 'Iterable[SamplerArgument]') -> None:
        super().__init__('elementProp', {
            'name': 'HTTPsampler.Arguments',
            'elementType': 'Arguments',
            'guiclass': 'HTTPArgumentsPanel',
            'testclass': 'Arguments',
            'enabled': 'true',
        })

        collection = self.collection_prop('Arguments.arguments')
        for arg in args:
            prop = collection.element_prop(arg.name, 'HTTPArgument')
            prop.bool_prop('HTTPArgument.always_encode', value=arg.encode)
            prop.string_prop('Argument.value', arg.value)
            prop.string_prop('Argument.metadata', '=')
            prop.bool_prop('HTTPArgument.use_equals', value=True)
            if arg.name:
                prop.string_prop('Argument.name', arg.name)


class HTTPSamplerProxy(TestElement):
    """HTTP request sampler."""

    def __init__(self, name: str, target: HttpTarget, content_encoding: str = 'UTF-8') -> None:
        """Initialize an HTTP sampler.

        Args:
            name: Sampler name.
            target: Resolved address and method.
            content_encoding: Encoding of the request body and arguments.
        """
        super().__init__('HTTPSamplerProxy', 'HttpTestSampleGui', 'HTTPSamplerProxy', name)

        self.string_prop('HTTPSampler.domain', target.domain)
        self.string_prop('HTTPSampler.port', target.port)
        self.string_prop('HTTPSampler.protocol', target.protocol)
        self.string_prop('HTTPSampler.contentEncoding', content_encoding)
        self.string_prop('HTTPSampler.path', target.path)
        self.string_prop('HTTPSampler.method', target.method)
        self.bool_prop('HTTPSampler.follow_redirects', value=True)
        self.bool_prop('HTTPSampler.auto_redirects', value=False)
        self.bool_prop('HTTPSampler.use_keepalive', value=True)
        self.bool_prop('HTTPSampler.DO_MULTIPART_POST', value=False)
        self.string_prop('HTTPSampler.embedded_url_re', '')
        self.string_prop('HTTPSampler.connect_timeout', '')
        self.string_prop('HTTPSampler.response_timeout', '')


class DubboSample(TestElement):
    """Dubbo RPC sampler of the JMeter Dubbo plugin."""

    def __init__(self, name: str, request: 'DubboRequest') -> None:
        """Initialize a Dubbo sampler.

        Args:
            name: Sampler name.
            request: Request with its connection records already merged
                with the scenario settings and its arguments filtered.
        """
        super().__init__(DUBBO_SAMPLE_CLASS, DUBBO_SAMPLE_GUI, DUBBO_SAMPLE_CLASS, name)

        config = request.config_center
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_PROTOCOL', config.protocol)
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_GROUP', config.group)
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_NAMESPACE', config.namespace)
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_USER_NAME', config.username)
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_PASSWORD', config.password)
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_ADDRESS', config.address)
        self.string_prop('FIELD_DUBBO_CONFIG_CENTER_TIMEOUT', config.timeout)

        registry = request.registry_center
        self.string_prop('FIELD_DUBBO_REGISTRY_PROTOCOL', registry.protocol)
        self.string_prop('FIELD_DUBBO_REGISTRY_GROUP', registry.group)
        self.string_prop('FIELD_DUBBO_REGISTRY_USER_NAME', registry.username)
        self.string_prop('FIELD_DUBBO_REGISTRY_PASSWORD', registry.password)
        self.string_prop('FIELD_DUBBO_ADDRESS', registry.address)
        self.string_prop('FIELD_DUBBO_REGISTRY_TIMEOUT', registry.timeout)

        consumer = request.consumer_and_service
        self.string_prop('FIELD_DUBBO_TIMEOUT', consumer.timeout)
        self.string_prop('FIELD_DUBBO_VERSION', consumer.version)
        self.string_prop('FIELD_DUBBO_RETRIES', consumer.retries)
        self.string_prop('FIELD_DUBBO_GROUP', consumer.group)
        self.string_prop('FIELD_DUBBO_CONNECTIONS', consumer.connections)
        self.string_prop('FIELD_DUBBO_LOADBALANCE', consumer.load_balance)
        self.string_prop('FIELD_DUBBO_ASYNC', consumer.async_)
        self.string_prop('FIELD_DUBBO_CLUSTER', consumer.cluster)

        self.string_prop('FIELD_DUBBO_RPC_PROTOCOL', request.protocol)
        self.string_prop('FIELD_DUBBO_INTERFACE', request.interface)
        self.string_prop('FIELD_DUBBO_METHOD', request.method)

        self.int_prop('FIELD_DUBBO_METHOD_ARGS_SIZE', len(request.args))
        self.int_prop('FIELD_DUBBO_ATTACHMENT_ARGS_SIZE', len(request.attachment_args))

        for index, arg in enumerate(request.args, start=1):
            self.string_prop(f'FIELD_DUBBO_METHOD_ARGS_PARAM_TYPE{index}', arg.name)
            self.string_prop(f'FIELD_DUBBO_METHOD_ARGS_PARAM_VALUE{index}', arg.value)

        for index, arg in enumerate(request.attachment_args, start=1):
            self.string_prop(f'FIELD_DUBBO_ATTACHMENT_ARGS_KEY{index}', arg.name)
            self.string_prop(f'FIELD_DUBBO_ATTACHMENT_ARGS_VALUE{index}', arg.value)


class ResponseAssertion(TestElement):
    """Pattern check of a part of the response."""

    test_field: str

    def __init__(self, name: str, condition: AssertionCondition, value: str) -> None:
        """Initialize a response assertion.

        Args:
            name: Assertion name.
            condition: Pattern matching rule.
            value: Pattern to test the response part against.
        """
        super().__init__('ResponseAssertion', 'AssertionGui', 'ResponseAssertion', name)

        # JMeter spells the property this way.
        strings = self.collection_prop('Asserion.test_strings')
        strings.string_prop(str(java_hash(value)), value)

        self.string_prop('Assertion.custom_message', '')
        self.string_prop('Assertion.test_field', self.test_field)
        self.bool_prop('Assertion.assume_success', value=False)
        self.int_prop('Assertion.test_type', condition)


class ResponseCodeAssertion(ResponseAssertion):
    """Pattern check of the response status code."""

    test_field = 'Assertion.response_code'


class ResponseDataAssertion(ResponseAssertion):
    """Pattern check of the response body."""

    test_field = 'Assertion.response_data'


class ResponseHeadersAssertion(ResponseAssertion):
    """Pattern check of the response headers."""

    test_field = 'Assertion.response_headers'


class DurationAssertion(TestElement):
    """Maximum response time check."""

    def __init__(self, name: str, duration: str) -> None:
        super().__init__('DurationAssertion', 'DurationAssertionGui', 'DurationAssertion', name)
        self.string_prop('DurationAssertion.duration', duration)


class RegexExtractor(TestElement):
    """Regular expression post-processor."""

    def __init__(self, name: str, variable: str, expression: str, *,
                 use_headers: bool = False, template: str = '$1$') -> None:
        """Initialize a regex extractor.

        Args:
            name: Extractor name.
            variable: Destination variable.
            expression: Regular expression.
            use_headers: Apply the expression to response headers.
            template: Template of the extracted value.
        """
        super().__init__('RegexExtractor', 'RegexExtractorGui', 'RegexExtractor', name)

        self.string_prop('RegexExtractor.useHeaders', 'true' if use_headers else 'false')
        self.string_prop('RegexExtractor.refname', variable)
        self.string_prop('RegexExtractor.regex', expression)
        self.string_prop('RegexExtractor.template', template)
        self.string_prop('RegexExtractor.default', '')
        self.string_prop('RegexExtractor.match_number', '')


class JSONPostProcessor(TestElement):
    """JSONPath post-processor."""

    def __init__(self, name: str, variable: str, expression: str) -> None:
        super().__init__('JSONPostProcessor', 'JSONPostProcessorGui', 'JSONPostProcessor', name)

        self.string_prop('JSONPostProcessor.referenceNames', variable)
        self.string_prop('JSONPostProcessor.jsonPathExprs', expression)
        self.string_prop('JSONPostProcessor.match_numbers', '')
        self.string_prop('JSONPostProcessor.defaultValues', '')


class XPath2Extractor(TestElement):
    """XPath 2 post-processor."""

    def __init__(self, name: str, variable: str, expression: str) -> None:
        super().__init__('XPath2Extractor', 'XPath2ExtractorGui', 'XPath2Extractor', name)

        self.string_prop('XPathExtractor2.default', '')
        self.string_prop('XPathExtractor2.refname', variable)
        self.string_prop('XPathExtractor2.matchNumber', '')
        self.string_prop('XPathExtractor2.xpathQuery', expression)
        self.string_prop('XPathExtractor2.namespaces', '')
