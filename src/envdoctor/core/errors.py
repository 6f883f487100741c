"""
Exceptions raised by envdoctor.

Resolution problems are never raised; they travel as warnings on a
ResolvedValue. These cover configuration, plugins, hooks and deployments.
"""

from typing import Optional


class EnvDoctorError(Exception):
    """Base class for envdoctor errors."""


class ConfigError(EnvDoctorError):
    """The configuration file is unreadable or invalid."""


class PluginLoadError(EnvDoctorError):
    """A configured plugin could not be imported or built."""

    def __init__(self, name: str, reason: str, cause: Optional[BaseException] = None):
        self.name = name
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to load plugin '{name}': {reason}")


class HookError(EnvDoctorError):
    """A plugin lifecycle hook raised. Aborts the running command."""

    def __init__(self, plugin: str, hook: str, cause: BaseException):
        self.plugin = plugin
        self.hook = hook
        self.cause = cause
        super().__init__(f"Plugin '{plugin}' failed in {hook} hook: {cause}")


class DeploymentError(EnvDoctorError):
    """A deployment provider failed or cannot run."""

    def __init__(self, provider: str, reason: str, cause: Optional[BaseException] = None):
        self.provider = provider
        self.reason = reason
        self.cause = cause
        super().__init__(f"Deployment provider '{provider}' {reason}")
