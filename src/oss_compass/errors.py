class OSSCompassError(Exception):
    """Base class for errors raised by oss_compass."""


class ConfigError(OSSCompassError, ValueError):
    pass


class GitHubError(OSSCompassError):
    pass
