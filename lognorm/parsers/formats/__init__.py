"""Built-in log type declarations.

Each module exposes a LOG_TYPES list. Nothing is registered on import;
bootstrap_registry() collects the lists through builtin_log_types().
"""

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.parsers.formats import apache, aws, cef, gcp, okta, suricata, syslog, zeek

FORMAT_MODULES = (zeek, suricata, aws, gcp, okta, apache, syslog, cef)


def builtin_log_types() -> list[LogTypeConfig]:
    """All built-in declarations in fixed registration order."""
    configs: list[LogTypeConfig] = []
    for module in FORMAT_MODULES:
        configs.extend(module.LOG_TYPES)
    return configs


__all__ = ["builtin_log_types", "FORMAT_MODULES"]
