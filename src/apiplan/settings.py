"""Runtime settings of the document compiler.

Settings are resolved from environment variables prefixed with
`APIPLAN_` (for example `APIPLAN_JMETER_VERSION=5.6.3`) and fall back to
the defaults the generated documents have always carried.
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from apiplan.models import SettingsModel


class CompilerSettings(SettingsModel):
    """Fixed attributes written into generated test plans."""

    model_config = SettingsConfigDict(
        env_prefix='APIPLAN_',
        frozen=True,
        extra='ignore',
    )

    jmeter_version: str = Field(
        default='5.2.1',
        title='JMeter version',
        description='Version written into the `jmeter` attribute of the document root.',
    )

    jmx_version: str = Field(
        default='1.2',
        title='Document version',
    )

    jmx_properties: str = Field(
        default='5.0',
        title='Document properties version',
    )

    content_encoding: str = Field(
        default='UTF-8',
        title='HTTP content encoding',
        description='Encoding of request bodies and arguments of HTTP samplers.',
    )

    num_threads: int = Field(
        default=1,
        ge=1,
        title='Threads per scenario',
    )

    ramp_time: int = Field(
        default=1,
        ge=0,
        title='Ramp-up period in seconds',
    )

    loops: int = Field(
        default=1,
        title='Scenario iterations',
        description='Number of loops of every thread group, `-1` runs forever.',
    )

    locale: str = Field(
        default='en',
        title='Message locale',
        description='Locale of the message catalog used to display validation failures.',
    )
