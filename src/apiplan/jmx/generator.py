"""Compiler of API tests into JMeter documents.

The generator walks an `ApiTest` and builds one thread group per
scenario, holding the merged variables and headers of the scenario and
one sampler per valid request. Invalid requests, parameters, headers,
assertions and extractors are left out silently; validation reports
them separately.

Every scenario is compiled from a deep copy, so compiling never changes
the test.
"""

from typing import TYPE_CHECKING, ClassVar
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict

from apiplan.names import CONTENT_TYPES, RegexSubject, as_text
from apiplan.schema import DubboRequest, Environment, HttpRequest, KeyValue
from apiplan.settings import CompilerSettings
from apiplan.urls import build_query, ensure_scheme, split_url

from .components import (
    Arguments,
    AssertionCondition,
    DubboSample,
    DurationAssertion,
    HeaderManager,
    HTTPSamplerArguments,
    HTTPSamplerProxy,
    HttpTarget,
    JMeterTestPlan,
    JSONPostProcessor,
    RegexExtractor,
    ResponseAssertion,
    ResponseCodeAssertion,
    ResponseDataAssertion,
    ResponseHeadersAssertion,
    SamplerArgument,
    TestPlan,
    ThreadGroup,
    XPath2Extractor,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from apiplan.models import ConfigModel
    from apiplan.schema import ApiTest, DubboConfig, RegexAssertion, Scenario

    from .elements import TestElement

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'


class JMXDocument(BaseModel):
    """Compiled JMeter document."""

    model_config = ConfigDict(frozen=True)

    name: str
    xml: str


def valid_items[T: KeyValue](items: 'Iterable[T]') -> list[T]:
    """Keep the key/value pairs that have a name or a value."""
    return [item for item in items if item.is_valid()]


def merge_items(source: 'Iterable[KeyValue]', target: list[KeyValue]) -> None:
    """Append source pairs whose names are not yet present in the target.

    Entries already in the target always win. Source entries without a
    name are skipped, and only the first source entry of a name is
    taken.
    """
    names = {item.name for item in target}
    for item in source:
        if item.name and item.name not in names:
            target.append(KeyValue(name=item.name, value=item.value))
            names.add(item.name)


def inherit_unset(target: 'ConfigModel', source: 'ConfigModel') -> None:
    """Fill the unset fields of a record from another record of its type."""
    for name in type(source).model_fields:
        value = getattr(source, name)
        if value is not None and not getattr(target, name):
            setattr(target, name, value)


class JMXGenerator:
    """Compiler of API tests into JMeter documents."""

    assertions: ClassVar[dict[str, type[ResponseAssertion]]] = {
        RegexSubject.RESPONSE_CODE: ResponseCodeAssertion,
        RegexSubject.RESPONSE_DATA: ResponseDataAssertion,
        RegexSubject.RESPONSE_HEADERS: ResponseHeadersAssertion,
    }

    def __init__(self, environments: 'Mapping[str, Environment] | None' = None,
                 settings: CompilerSettings | None = None) -> None:
        """Initialize the generator.

        Args:
            environments: Environments by identifier, used for scenarios
                that refer to an environment without embedding it.
            settings: Compiler settings, resolved from the process
                environment when omitted.
        """
        self.environments = dict(environments or {})
        self.settings = settings or CompilerSettings()

    def compile(self, test: 'ApiTest') -> JMXDocument | None:
        """Compile a test into a JMeter document.

        Args:
            test: Test to compile.

        Returns:
            Document named after the test, or None when the test has no
            identifier or no name.
        """
        if (root := self.build(test)) is None:
            return None

        return JMXDocument(name=f'{test.name}.jmx', xml=self.to_xml(root))

    def build(self, test: 'ApiTest') -> JMeterTestPlan | None:
        """Build the element tree of a test."""
        if not test.id or not test.name:
            return None

        plan = TestPlan(test.name)
        for scenario in test.scenario_definition:
            plan.put(self.build_scenario(scenario.clone()))

        return JMeterTestPlan(self.settings).put(plan)

    @staticmethod
    def to_xml(root: JMeterTestPlan) -> str:
        """Serialize a document tree with the declaration line."""
        return XML_HEADER + root.to_xml()

    def resolve_environment(self, scenario: 'Scenario') -> Environment | None:
        """Find the environment of a scenario."""
        if scenario.environment is not None:
            return scenario.environment

        if scenario.environment_id:
            return self.environments.get(scenario.environment_id)

        return None

    def build_scenario(self, scenario: 'Scenario') -> ThreadGroup:
        """Build the thread group of a scenario copy."""
        environment = self.resolve_environment(scenario)
        scenario.environment = environment

        name = as_text(scenario.name)
        thread_group = ThreadGroup(
            name,
            num_threads=self.settings.num_threads,
            ramp_time=self.settings.ramp_time,
            loops=self.settings.loops,
        )

        if environment is not None:
            merge_items(environment.variables, scenario.variables)
            merge_items(environment.headers, scenario.headers)

        if variables := valid_items(scenario.variables):
            thread_group.put(Arguments(f'{name} Variables', variables))

        if headers := valid_items(scenario.headers):
            thread_group.put(HeaderManager(f'{name} Headers', headers))

        for request in scenario.requests:
            if not request.is_valid(scenario.environment_id):
                continue

            if isinstance(request, DubboRequest):
                sampler = self.build_dubbo_sampler(request, scenario.dubbo_config)
            else:
                sampler = self.build_http_sampler(request, environment)

            self.add_assertions(sampler, request)
            self.add_extractors(sampler, request)

            thread_group.put(sampler)

        return thread_group

    def build_dubbo_sampler(self, request: DubboRequest, config: 'DubboConfig') -> DubboSample:
        """Build a Dubbo sampler, inheriting unset settings from the scenario."""
        merged = request.clone()
        merged.args = valid_items(merged.args)
        merged.attachment_args = valid_items(merged.attachment_args)

        inherit_unset(merged.config_center, config.config_center)
        inherit_unset(merged.registry_center, config.registry_center)
        inherit_unset(merged.consumer_and_service, config.consumer_and_service)

        return DubboSample(as_text(request.name), merged)

    def http_target(self, request: HttpRequest, environment: Environment | None) -> HttpTarget:
        """Resolve the address of an HTTP request.

        Requests addressed by environment take scheme, domain and port
        from the environment. Other requests are addressed by their URL,
        with `http://` assumed when the scheme is missing.

        Args:
            request: Valid HTTP request.
            environment: Environment of the scenario.

        Returns:
            Sampler address and method.
        """
        method = request.show_method()

        if request.use_environment:
            environment = environment or Environment()
            return HttpTarget(
                method=method,
                domain=as_text(environment.domain),
                port=as_text(environment.port),
                protocol=as_text(environment.protocol),
                path=self.with_query(method, unquote(as_text(request.path)), request.parameters),
            )

        address = split_url(ensure_scheme(as_text(request.url)))
        return HttpTarget(
            method=method,
            domain=address.hostname,
            port=address.port,
            protocol=address.scheme,
            path=self.with_query(method, address.path, request.parameters),
        )

    @staticmethod
    def with_query(method: str, path: str, parameters: 'Iterable[KeyValue]') -> str:
        """Append the query string of non-GET requests to a path.

        Only parameters with both a name and a value are encoded. The
        separator is always appended, so a request without such
        parameters ends with a bare `?`.
        """
        if method == 'GET':
            return path

        pairs = [
            (parameter.name, parameter.value)
            for parameter in parameters
            if parameter.name and parameter.value
        ]

        return f'{path}?{build_query(pairs)}'

    def build_http_sampler(self, request: HttpRequest,
                           environment: Environment | None) -> HTTPSamplerProxy:
        """Build an HTTP sampler with its headers and arguments."""
        target = self.http_target(request, environment)
        sampler = HTTPSamplerProxy(as_text(request.name), target, self.settings.content_encoding)

        self.add_content_type(request)
        if headers := valid_items(request.headers):
            sampler.put(HeaderManager(f'{as_text(request.name)} Headers', headers))

        if target.method == 'GET':
            if parameters := valid_items(request.parameters):
                sampler.add(HTTPSamplerArguments(
                    SamplerArgument(as_text(item.name), as_text(item.value))
                    for item in parameters
                ))
            return sampler

        if request.body.is_kv():
            sampler.add(HTTPSamplerArguments(
                SamplerArgument(as_text(item.name), as_text(item.value))
                for item in valid_items(request.body.kvs)
            ))
        else:
            sampler.bool_prop('HTTPSampler.postBodyRaw', value=True)
            sampler.add(HTTPSamplerArguments([
                SamplerArgument('', as_text(request.body.raw), encode=False),
            ]))

        return sampler

    @staticmethod
    def add_content_type(request: HttpRequest) -> None:
        """Replace the Content-Type header according to the body format."""
        content_type = CONTENT_TYPES.get(request.body.format or '')
        if content_type is None:
            return

        for index, header in enumerate(request.headers):
            if (header.name or '').lower() == 'content-type':
                del request.headers[index]
                break

        request.headers.append(KeyValue(name='Content-Type', value=content_type))

    def add_assertions(self, sampler: 'TestElement', request: HttpRequest | DubboRequest) -> None:
        """Attach the valid regex and duration assertions of a request."""
        for regex in request.assertions.regex:
            if regex.is_valid() and (assertion := self.build_assertion(regex)) is not None:
                sampler.put(assertion)

        duration = request.assertions.duration
        if duration.is_valid():
            sampler.put(DurationAssertion(f'Response In Time: {duration.value}', as_text(duration.value)))

    def build_assertion(self, regex: 'RegexAssertion') -> ResponseAssertion | None:
        """Build the response assertion of a regex check, if its subject is known."""
        factory = self.assertions.get(regex.subject or '')
        if factory is None:
            return None

        return factory(as_text(regex.description), AssertionCondition.CONTAINS, as_text(regex.expression))

    @staticmethod
    def add_extractors(sampler: 'TestElement', request: HttpRequest | DubboRequest) -> None:
        """Attach the valid extractors of a request, grouped by kind."""
        extract = request.extract

        for item in extract.regex:
            if item.is_valid():
                sampler.put(RegexExtractor(
                    f'{item.variable} RegexExtractor',
                    as_text(item.variable),
                    as_text(item.expression),
                    use_headers=bool(item.use_headers),
                ))

        for item in extract.json_path:
            if item.is_valid():
                sampler.put(JSONPostProcessor(
                    f'{item.variable} JSONExtractor',
                    as_text(item.variable),
                    as_text(item.expression),
                ))

        for item in extract.xpath:
            if item.is_valid():
                sampler.put(XPath2Extractor(
                    f'{item.variable} XPath2Evaluator',
                    as_text(item.variable),
                    as_text(item.expression),
                ))
