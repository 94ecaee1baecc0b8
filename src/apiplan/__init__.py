"""API test scenario model and JMeter test-plan compiler.

The `apiplan` package describes API test scenarios (named sequences of
HTTP or Dubbo RPC requests with variables, headers, assertions, and
value-extraction rules) and compiles them into JMeter `.jmx` test plans.

Key features:
- validated, tolerant data model for tests, scenarios and requests;
- uniform validation results keyed by message-catalog codes;
- environment variable and header merging at compile time;
- deterministic lowering of the model into a JMeter element tree.
"""
