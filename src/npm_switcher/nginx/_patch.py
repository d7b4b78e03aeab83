"""Pure text transforms for proxy host config files.

Proxy Manager renders one config file per proxy host. The forward target
appears in a few fixed idioms::

    set $forward_scheme http;
    set $server         "10.0.0.1";
    set $port           8080;

and, in custom upstream blocks, as ``server 10.0.0.1:8080;``. Replacements
are keyed on the exact old value, so every matching occurrence is updated
and unrelated hosts or ports are left alone.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from npm_switcher.config import UpstreamTarget


def _server_var_pattern(host: str) -> re.Pattern[str]:
    return re.compile(r'(set\s+\$server\s+")' + re.escape(host) + r'("\s*;)')


def _port_var_pattern(port: int) -> re.Pattern[str]:
    return re.compile(r"(set\s+\$port\s+)" + str(port) + r"(\s*;)")


def _scheme_var_pattern(scheme: str) -> re.Pattern[str]:
    return re.compile(r"(set\s+\$forward_scheme\s+)" + re.escape(scheme) + r"(\s*;)")


def _upstream_server_pattern(host: str, port: int) -> re.Pattern[str]:
    return re.compile(
        r"((?<![\w$])server\s+)" + re.escape(host) + ":" + str(port) + r"(?=[\s;])"
    )


def replace_upstream(content: str, old: UpstreamTarget, new: UpstreamTarget) -> str:
    """Rewrite every occurrence of ``old`` in ``content`` to ``new``.

    Args:
        content: Full config file text.
        old: Target currently written in the file.
        new: Target to write.

    Returns:
        The updated text. Identical to ``content`` when nothing matched.

    Examples:
        >>> from npm_switcher.config import UpstreamTarget
        >>> old = UpstreamTarget(host="10.0.0.1", port=80, scheme="http")
        >>> new = UpstreamTarget(host="10.0.0.2", port=8000, scheme="http")
        >>> replace_upstream('set $server "10.0.0.1";\\nset $port 80;', old, new)
        'set $server "10.0.0.2";\\nset $port 8000;'
    """
    updated = _server_var_pattern(old.host).sub(
        lambda m: m.group(1) + new.host + m.group(2), content
    )
    updated = _port_var_pattern(old.port).sub(
        lambda m: m.group(1) + str(new.port) + m.group(2), updated
    )
    updated = _upstream_server_pattern(old.host, old.port).sub(
        lambda m: f"{m.group(1)}{new.host}:{new.port}", updated
    )
    if old.scheme != new.scheme:
        updated = _scheme_var_pattern(old.scheme).sub(
            lambda m: m.group(1) + new.scheme + m.group(2), updated
        )
    return updated


def count_upstream_references(content: str, target: UpstreamTarget) -> int:
    """Count the host and port idioms in ``content`` that refer to ``target``."""
    return (
        len(_server_var_pattern(target.host).findall(content))
        + len(_port_var_pattern(target.port).findall(content))
        + len(_upstream_server_pattern(target.host, target.port).findall(content))
    )
