"""Integration tests for the JMeter document compiler."""

from typing import TYPE_CHECKING

import pytest

from apiplan.jmx import JMXGenerator
from apiplan.jmx.components import DUBBO_SAMPLE_CLASS
from apiplan.schema import ApiTest, Environment
from apiplan.settings import CompilerSettings

if TYPE_CHECKING:
    from collections.abc import Callable
    from xml.etree.ElementTree import Element

if TYPE_CHECKING:
    type Props = Callable[[Element], dict[str, str]]
    type Subtree = Callable[[Element, Element], Element]


def _pairs(element: 'Element', name: str, value: str) -> list[tuple[str, str]]:
    """Read name/value pairs of a collection-based element."""
    return [
        (
            item.findtext(f"stringProp[@name='{name}']") or '',
            item.findtext(f"stringProp[@name='{value}']") or '',
        )
        for item in element.iterfind('collectionProp/elementProp')
    ]


def _children(tree: 'Element') -> list['Element']:
    """Test elements of a hash tree, without their own hash trees."""
    return [child for child in tree if child.tag != 'hashTree']


def test_get_request(make_test: 'Callable[..., ApiTest]',
                     compile_tree: 'Callable[..., Element]',
                     props: 'Props') -> None:
    """GET parameters are carried as sampler arguments.

    The path keeps the URL path only; JMeter appends the arguments, so
    the request line is `/?q=x`.
    """
    test = make_test({
        'method': 'GET',
        'url': 'example.com',
        'parameters': [{'name': 'q', 'value': 'x'}],
    })

    tree = compile_tree(test)

    assert tree.attrib == {'version': '1.2', 'properties': '5.0', 'jmeter': '5.2.1'}
    assert tree.find('hashTree/TestPlan').get('testname') == 'Smoke'
    assert [group.get('testname') for group in tree.iter('ThreadGroup')] == ['S1']

    sampler, = tree.iter('HTTPSamplerProxy')
    values = props(sampler)
    expected = {
        'HTTPSampler.domain': 'example.com',
        'HTTPSampler.port': '',
        'HTTPSampler.protocol': 'http',
        'HTTPSampler.path': '/',
        'HTTPSampler.method': 'GET',
        'HTTPSampler.contentEncoding': 'UTF-8',
    }
    assert {key: values[key] for key in expected} == expected

    arguments = sampler.find("elementProp[@name='HTTPsampler.Arguments']")
    assert _pairs(arguments, 'Argument.name', 'Argument.value') == [('q', 'x')]


def test_post_request_query(make_test: 'Callable[..., ApiTest]',
                            compile_tree: 'Callable[..., Element]',
                            props: 'Props') -> None:
    """Non-GET parameters with a name and a value are encoded into the path."""
    test = make_test({
        'method': 'POST',
        'url': 'https://example.com:8443/api',
        'parameters': [
            {'name': 'q', 'value': 'a b'},
            {'name': 'only'},
            {'value': 'orphan'},
            {'name': 'page', 'value': 2},
        ],
        'body': {'type': 'Raw', 'raw': 'payload'},
    })

    sampler, = compile_tree(test).iter('HTTPSamplerProxy')

    assert props(sampler)['HTTPSampler.path'] == '/api?q=a%20b&page=2'
    assert props(sampler)['HTTPSampler.port'] == '8443'
    assert props(sampler)['HTTPSampler.protocol'] == 'https'


def test_post_request_without_query(make_test: 'Callable[..., ApiTest]',
                                    compile_tree: 'Callable[..., Element]',
                                    props: 'Props') -> None:
    """A bare separator is appended when no parameter qualifies."""
    test = make_test({
        'method': 'PUT',
        'url': 'http://example.com/api',
        'parameters': [{'name': 'only'}],
    })

    sampler, = compile_tree(test).iter('HTTPSamplerProxy')

    assert props(sampler)['HTTPSampler.path'] == '/api?'


def test_raw_json_body(make_test: 'Callable[..., ApiTest]',
                       compile_tree: 'Callable[..., Element]',
                       props: 'Props', subtree: 'Subtree') -> None:
    """Raw bodies set the raw flag and declared formats set the content type."""
    test = make_test({
        'name': 'Create',
        'method': 'POST',
        'url': 'example.com/items',
        'headers': [
            {'name': 'content-type', 'value': 'text/plain'},
            {'name': 'X-Trace', 'value': '1'},
        ],
        'body': {'type': 'Raw', 'raw': '{}', 'format': 'json'},
    })

    tree = compile_tree(test)
    sampler, = tree.iter('HTTPSamplerProxy')

    assert props(sampler)['HTTPSampler.postBodyRaw'] == 'true'

    arguments = sampler.find("elementProp[@name='HTTPsampler.Arguments']")
    raw, = arguments.iterfind('collectionProp/elementProp')
    assert raw.get('name') == ''
    assert props(raw)['HTTPArgument.always_encode'] == 'false'
    assert props(raw)['Argument.value'] == '{}'

    manager, = subtree(tree, sampler).iter('HeaderManager')
    assert manager.get('testname') == 'Create Headers'
    assert _pairs(manager, 'Header.name', 'Header.value') == [
        ('X-Trace', '1'),
        ('Content-Type', 'application/json'),
    ]


@pytest.mark.parametrize('body_format, content_type', (
    pytest.param('json', 'application/json', id='json'),
    pytest.param('xml', 'text/xml', id='xml'),
    pytest.param('html', 'text/html', id='html'),
    pytest.param('text', None, id='text'),
    pytest.param(None, None, id='unset'),
))
def test_content_type(make_test: 'Callable[..., ApiTest]',
                      compile_tree: 'Callable[..., Element]',
                      body_format: str | None, content_type: str | None) -> None:
    """Content type replaces a prior header once and never duplicates it."""
    test = make_test({
        'method': 'POST',
        'url': 'example.com',
        'headers': [{'name': 'Content-Type', 'value': 'text/csv'}],
        'body': {'type': 'Raw', 'raw': 'data', 'format': body_format},
    })

    manager, = compile_tree(test).iter('HeaderManager')

    assert _pairs(manager, 'Header.name', 'Header.value') == [
        ('Content-Type', content_type or 'text/csv'),
    ]


def test_key_value_body(make_test: 'Callable[..., ApiTest]',
                        compile_tree: 'Callable[..., Element]',
                        props: 'Props') -> None:
    """Key/value bodies become encoded sampler arguments."""
    test = make_test({
        'method': 'POST',
        'url': 'example.com',
        'body': {'type': 'KeyValue', 'kvs': [{'name': 'a', 'value': '1'}, {}]},
    })

    sampler, = compile_tree(test).iter('HTTPSamplerProxy')
    arguments = sampler.find("elementProp[@name='HTTPsampler.Arguments']")

    assert 'HTTPSampler.postBodyRaw' not in props(sampler)
    assert _pairs(arguments, 'Argument.name', 'Argument.value') == [('a', '1')]
    assert arguments.findtext(".//boolProp[@name='HTTPArgument.always_encode']") == 'true'


def test_invalid_requests_are_skipped(make_test: 'Callable[..., ApiTest]',
                                      compile_tree: 'Callable[..., Element]') -> None:
    """Invalid requests stay in the model but are not compiled."""
    test = make_test(
        {'name': 'missing url', 'url': ''},
        {'name': 'ok', 'url': 'example.com'},
        {'name': 'no environment', 'useEnvironment': True, 'path': '/a'},
        {'name': 'no interface', 'type': 'DUBBO'},
    )

    tree = compile_tree(test)

    assert len(test.scenario_definition[0].requests) == 4
    assert [sampler.get('testname') for sampler in tree.iter('HTTPSamplerProxy')] == ['ok']
    assert list(tree.iter(DUBBO_SAMPLE_CLASS)) == []


@pytest.mark.parametrize('url', (
    pytest.param('example.com:8080/a%20b?c=d', id='port and path'),
    pytest.param('example.com', id='host only'),
    pytest.param('user@example.com/', id='credentials'),
))
def test_default_scheme(make_test: 'Callable[..., ApiTest]',
                        compile_tree: 'Callable[..., Element]',
                        props: 'Props', url: str) -> None:
    """URLs without a scheme compile as if `http://` were prepended."""
    implicit, = compile_tree(make_test({'url': url})).iter('HTTPSamplerProxy')
    explicit, = compile_tree(make_test({'url': f'http://{url}'})).iter('HTTPSamplerProxy')

    assert props(implicit) == props(explicit)


def test_compilation_is_repeatable(make_test: 'Callable[..., ApiTest]',
                                   settings: CompilerSettings) -> None:
    """Compiling twice yields identical markup and leaves the test unchanged."""
    test = make_test({
        'method': 'POST',
        'url': 'example.com',
        'parameters': [{'name': 'q', 'value': 'x y'}],
        'headers': [{'name': 'Content-Type', 'value': 'text/csv'}],
        'body': {'type': 'Raw', 'raw': '{}', 'format': 'json'},
    })
    before = test.model_dump()
    generator = JMXGenerator(settings=settings)

    first = generator.compile(test)
    second = generator.compile(test)

    assert first == second
    assert test.model_dump() == before


def test_environment_merge(make_test: 'Callable[..., ApiTest]',
                           compile_tree: 'Callable[..., Element]',
                           props: 'Props') -> None:
    """Environment variables and headers are merged, the scenario wins."""
    test = make_test(
        {'useEnvironment': True, 'path': '/users%20all', 'method': 'POST',
         'parameters': [{'name': 'q', 'value': 'x'}]},
        environmentId='env-1',
        variables=[{'name': 'a', 'value': '1'}],
        headers=[{'name': 'X-Scenario', 'value': 's'}],
        environment={
            'id': 'env-1',
            'protocol': 'https',
            'domain': 'api.local',
            'port': 8443,
            'variables': [
                {'name': 'a', 'value': '2'},
                {'name': 'b', 'value': '3'},
                {'name': 'b', 'value': '4'},
                {'value': 'unnamed'},
            ],
            'headers': '[{"name": "X-Env", "value": "e"}]',
        },
    )

    tree = compile_tree(test)

    variables, = tree.iter('Arguments')
    assert variables.get('testname') == 'S1 Variables'
    assert _pairs(variables, 'Argument.name', 'Argument.value') == [('a', '1'), ('b', '3')]

    headers, = tree.iter('HeaderManager')
    assert headers.get('testname') == 'S1 Headers'
    assert _pairs(headers, 'Header.name', 'Header.value') == [('X-Scenario', 's'), ('X-Env', 'e')]

    sampler, = tree.iter('HTTPSamplerProxy')
    assert props(sampler)['HTTPSampler.domain'] == 'api.local'
    assert props(sampler)['HTTPSampler.port'] == '8443'
    assert props(sampler)['HTTPSampler.protocol'] == 'https'
    assert props(sampler)['HTTPSampler.path'] == '/users all?q=x'

    assert len(test.scenario_definition[0].variables) == 1


def test_environment_lookup(make_test: 'Callable[..., ApiTest]',
                            compile_tree: 'Callable[..., Element]',
                            props: 'Props') -> None:
    """Environments are looked up by identifier when not embedded."""
    test = make_test(
        {'useEnvironment': True, 'path': '/health'},
        environmentId='env-1',
    )
    environments = {
        'env-1': Environment(id='env-1', protocol='http', domain='svc.local', port='8080'),
    }

    sampler, = compile_tree(test, environments).iter('HTTPSamplerProxy')

    assert props(sampler)['HTTPSampler.domain'] == 'svc.local'
    assert props(sampler)['HTTPSampler.path'] == '/health'


def test_empty_collections_are_omitted(make_test: 'Callable[..., ApiTest]',
                                       compile_tree: 'Callable[..., Element]') -> None:
    """Variables and headers without valid entries produce no elements."""
    test = make_test(
        {'url': 'example.com', 'headers': [{}]},
        variables=[{'name': ''}],
    )

    tree = compile_tree(test)

    assert list(tree.iter('Arguments')) == []
    assert list(tree.iter('HeaderManager')) == []
    assert tree.find(".//HTTPSamplerProxy/elementProp[@name='HTTPsampler.Arguments']") is None


def test_dubbo_request(make_test: 'Callable[..., ApiTest]',
                       compile_tree: 'Callable[..., Element]',
                       props: 'Props') -> None:
    """RPC requests inherit unset connection settings from the scenario."""
    test = make_test(
        {
            'type': 'DUBBO',
            'name': 'Call',
            'protocol': 'rmi://',
            'interface': 'com.example.Api',
            'method': 'get',
            'configCenter': {'address': 'own:2181'},
            'registryCenter': {'address': 'registry:2181'},
            'args': [{'name': 'java.lang.String', 'value': 'v'}, {}],
            'attachmentArgs': [{'name': 'k', 'value': 'v'}],
        },
        dubboConfig={
            'configCenter': {'protocol': 'zookeeper', 'address': 'shared:2181'},
            'registryCenter': {'protocol': 'nacos', 'group': 'dev'},
            'consumerAndService': {'timeout': '5000', 'group': 'g1'},
        },
    )

    tree = compile_tree(test)

    sample, = tree.iter(DUBBO_SAMPLE_CLASS)
    values = props(sample)

    assert sample.get('testname') == 'Call'
    assert values['FIELD_DUBBO_CONFIG_CENTER_ADDRESS'] == 'own:2181'
    assert values['FIELD_DUBBO_CONFIG_CENTER_PROTOCOL'] == 'zookeeper'
    assert values['FIELD_DUBBO_ADDRESS'] == 'registry:2181'
    assert values['FIELD_DUBBO_REGISTRY_PROTOCOL'] == 'nacos'
    assert values['FIELD_DUBBO_REGISTRY_GROUP'] == 'dev'
    assert values['FIELD_DUBBO_TIMEOUT'] == '1000'
    assert values['FIELD_DUBBO_GROUP'] == 'g1'
    assert values['FIELD_DUBBO_ASYNC'] == 'sync'
    assert values['FIELD_DUBBO_RPC_PROTOCOL'] == 'rmi://'
    assert values['FIELD_DUBBO_INTERFACE'] == 'com.example.Api'
    assert values['FIELD_DUBBO_METHOD'] == 'get'
    assert values['FIELD_DUBBO_METHOD_ARGS_SIZE'] == '1'
    assert values['FIELD_DUBBO_METHOD_ARGS_PARAM_TYPE1'] == 'java.lang.String'
    assert values['FIELD_DUBBO_METHOD_ARGS_PARAM_VALUE1'] == 'v'
    assert values['FIELD_DUBBO_ATTACHMENT_ARGS_SIZE'] == '1'
    assert values['FIELD_DUBBO_ATTACHMENT_ARGS_KEY1'] == 'k'
    assert values['FIELD_DUBBO_ATTACHMENT_ARGS_VALUE1'] == 'v'

    request = test.scenario_definition[0].requests[0]
    assert len(request.args) == 2
    assert request.config_center.protocol is None


def test_assertions(make_test: 'Callable[..., ApiTest]',
                    compile_tree: 'Callable[..., Element]',
                    props: 'Props', subtree: 'Subtree') -> None:
    """Valid regex assertions on known subjects and durations are attached."""
    test = make_test({
        'url': 'example.com',
        'assertions': {
            'regex': [
                {'subject': 'Response Code', 'expression': '200', 'description': 'ok'},
                {'subject': 'Response Data', 'expression': 'id'},
                {'subject': 'Response Headers', 'expression': 'json'},
                {'subject': 'Response Body', 'expression': 'unknown'},
                {'subject': 'Response Code'},
            ],
            'text': [{'subject': 'Response Data', 'value': 'ignored'}],
            'duration': {'value': 500},
        },
    })

    tree = compile_tree(test)
    sampler, = tree.iter('HTTPSamplerProxy')
    children = _children(subtree(tree, sampler))

    assert [child.tag for child in children] == [
        'ResponseAssertion',
        'ResponseAssertion',
        'ResponseAssertion',
        'DurationAssertion',
    ]
    assert [props(child).get('Assertion.test_field') for child in children[:3]] == [
        'Assertion.response_code',
        'Assertion.response_data',
        'Assertion.response_headers',
    ]
    assert {props(child)['Assertion.test_type'] for child in children[:3]} == {'2'}
    assert children[0].get('testname') == 'ok'
    assert children[0].findtext("collectionProp/stringProp[@name='49586']") == '200'
    assert children[3].get('testname') == 'Response In Time: 500'
    assert props(children[3])['DurationAssertion.duration'] == '500'


@pytest.mark.parametrize('value', (
    pytest.param(0, id='zero'),
    pytest.param(False, id='false'),
    pytest.param('', id='empty'),
))
def test_unset_duration_is_skipped(make_test: 'Callable[..., ApiTest]',
                                   compile_tree: 'Callable[..., Element]',
                                   value: object) -> None:
    """Zero, `false` and empty durations do not produce an assertion."""
    test = make_test({
        'url': 'example.com',
        'assertions': {'duration': {'value': value}},
    })

    assert list(compile_tree(test).iter('DurationAssertion')) == []


def test_zero_values(make_test: 'Callable[..., ApiTest]',
                     compile_tree: 'Callable[..., Element]') -> None:
    """Zero-only pairs are dropped, zero values of named pairs are kept."""
    test = make_test(
        {'url': 'example.com'},
        variables=[
            {'name': 'retries', 'value': 0},
            {'name': '', 'value': 0},
            {'value': False},
        ],
    )

    arguments, = compile_tree(test).iter('Arguments')

    assert _pairs(arguments, 'Argument.name', 'Argument.value') == [('retries', '0')]


def test_extractors(make_test: 'Callable[..., ApiTest]',
                    compile_tree: 'Callable[..., Element]',
                    props: 'Props', subtree: 'Subtree') -> None:
    """Valid extractors are attached grouped by kind."""
    test = make_test({
        'type': 'DUBBO',
        'interface': 'com.example.Api',
        'method': 'get',
        'configCenter': {'address': 'zk:2181'},
        'registryCenter': {'address': 'zk:2181'},
        'extract': {
            'xpath': [{'variable': 'title', 'expression': '//title'}, {'variable': 'skip'}],
            'json': [{'variable': 'id', 'expression': '$.id'}],
            'regex': [{'variable': 'token', 'expression': 't=(\\w+)', 'useHeaders': True}],
        },
    })

    tree = compile_tree(test)
    sample, = tree.iter(DUBBO_SAMPLE_CLASS)
    regex, json_path, xpath = _children(subtree(tree, sample))

    assert [element.get('testname') for element in (regex, json_path, xpath)] == [
        'token RegexExtractor',
        'id JSONExtractor',
        'title XPath2Evaluator',
    ]
    assert props(regex)['RegexExtractor.useHeaders'] == 'true'
    assert props(regex)['RegexExtractor.refname'] == 'token'
    assert props(regex)['RegexExtractor.template'] == '$1$'
    assert props(json_path)['JSONPostProcessor.jsonPathExprs'] == '$.id'
    assert props(xpath)['XPathExtractor2.xpathQuery'] == '//title'


@pytest.mark.parametrize('options', (
    pytest.param({'name': None}, id='no name'),
    pytest.param({'name': ''}, id='empty name'),
    pytest.param({'id': None}, id='no identifier'),
))
def test_test_without_identity(options: dict, settings: CompilerSettings) -> None:
    """Tests without identity or name yield no document."""
    test = ApiTest.model_validate({'id': 'test-1', 'name': 'Smoke', **options})

    assert JMXGenerator(settings=settings).compile(test) is None


def test_settings_are_applied(make_test: 'Callable[..., ApiTest]', props: 'Props',
                              monkeypatch: pytest.MonkeyPatch,
                              settings: CompilerSettings) -> None:  # noqa: ARG001
    """Document versions and thread group sizing come from the settings."""
    monkeypatch.setenv('APIPLAN_JMETER_VERSION', '5.6.3')
    monkeypatch.setenv('APIPLAN_NUM_THREADS', '10')
    monkeypatch.setenv('APIPLAN_LOOPS', '-1')

    document = make_test({'url': 'example.com'}).to_jmx()

    assert document is not None
    assert 'jmeter="5.6.3"' in document.xml
    assert '<stringProp name="ThreadGroup.num_threads">10</stringProp>' in document.xml
    assert '<stringProp name="LoopController.loops">-1</stringProp>' in document.xml
