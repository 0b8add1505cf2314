import re
from functools import lru_cache

# CloudFront path patterns only support two wildcards:
# * matches zero or more characters (including '/'), ? matches exactly one.
# https://docs.aws.amazon.com/AmazonCloudFront/latest/DeveloperGuide/DownloadDistValuesCacheBehavior.html#DownloadDistValuesPathPattern
_WILDCARDS = {"*": ".*", "?": "."}


def normalize_pattern(pattern: str) -> str:
    """Add the leading slash CloudFront assumes when a pattern omits it."""
    return pattern if pattern.startswith("/") else f"/{pattern}"


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    if not pattern:
        raise ValueError("Path pattern cannot be empty")
    parts = [_WILDCARDS.get(char, re.escape(char)) for char in normalize_pattern(pattern)]
    return re.compile("".join(parts), re.DOTALL)


def matches(pattern: str, path: str) -> bool:
    """Check whether the raw request path matches the pattern.

    Matching is anchored at both ends and case-sensitive. The path is not
    normalized in any way.
    """
    return compile_pattern(pattern).fullmatch(path) is not None
