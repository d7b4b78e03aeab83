import pytest

from npm_switcher.config import UpstreamTarget
from npm_switcher.nginx import count_upstream_references, replace_upstream
from tests.conftest import render_conf

OLD = UpstreamTarget(host="10.0.0.1", port=8080, scheme="http")
NEW = UpstreamTarget(host="10.0.0.9", port=8081, scheme="http")


class TestReplaceUpstream:
    def test_rewrites_proxy_manager_variables(self) -> None:
        content = render_conf("sso.example.com", "10.0.0.1", 8080)

        updated = replace_upstream(content, OLD, NEW)

        assert 'set $server         "10.0.0.9";' in updated
        assert "set $port           8081;" in updated
        assert "10.0.0.1" not in updated
        assert "8080" not in updated

    def test_preserves_unrelated_text(self) -> None:
        content = render_conf("sso.example.com", "10.0.0.1", 8080)

        updated = replace_upstream(content, OLD, NEW)

        assert "listen 80;" in updated
        assert "server_name sso.example.com;" in updated
        assert "set $forward_scheme http;" in updated

    def test_rewrites_upstream_server_lines(self) -> None:
        content = (
            "upstream backend {\n"
            "  server 10.0.0.1:8080;\n"
            "  server 10.0.0.2:8080;\n"
            "}\n"
        )

        updated = replace_upstream(content, OLD, NEW)

        assert "server 10.0.0.9:8081;" in updated
        assert "server 10.0.0.2:8080;" in updated

    def test_upstream_server_with_parameters(self) -> None:
        content = "server 10.0.0.1:8080 max_fails=3;\n"
        assert replace_upstream(content, OLD, NEW) == (
            "server 10.0.0.9:8081 max_fails=3;\n"
        )

    def test_does_not_touch_longer_ports_or_hosts(self) -> None:
        content = (
            'set $server "10.0.0.10";\n'
            "set $port 80800;\n"
            "server 10.0.0.1:80801;\n"
        )
        assert replace_upstream(content, OLD, NEW) == content

    def test_does_not_touch_server_name(self) -> None:
        content = "server_name 10.0.0.1:8080;\n"
        assert replace_upstream(content, OLD, NEW) == content

    def test_rewrites_every_occurrence(self) -> None:
        content = 'set $server "10.0.0.1";\nset $server "10.0.0.1";\n'
        updated = replace_upstream(content, OLD, NEW)
        assert updated.count('"10.0.0.9"') == 2

    def test_rewrites_scheme_when_changed(self) -> None:
        content = render_conf("sso.example.com", "10.0.0.1", 8080, "http")
        new = UpstreamTarget(host="10.0.0.9", port=8443, scheme="https")

        updated = replace_upstream(content, OLD, new)

        assert "set $forward_scheme https;" in updated

    def test_leaves_scheme_alone_when_unchanged(self) -> None:
        content = "set $forward_scheme http;\nproxy_pass http://x;\n"
        assert replace_upstream(content, OLD, NEW) == content

    def test_no_match_returns_content_unchanged(self) -> None:
        content = render_conf("sso.example.com", "192.168.1.5", 3000)
        assert replace_upstream(content, OLD, NEW) == content

    def test_same_target_is_a_no_op(self) -> None:
        content = render_conf("sso.example.com", "10.0.0.1", 8080)
        assert replace_upstream(content, OLD, OLD) == content

    def test_host_with_regex_metacharacters(self) -> None:
        old = UpstreamTarget(host="app.svc", port=80, scheme="http")
        content = 'set $server "app.svc";\nset $server "appxsvc";\n'

        updated = replace_upstream(content, old, NEW)

        assert updated == 'set $server "10.0.0.9";\nset $server "appxsvc";\n'

    def test_replacement_with_backslash_is_literal(self) -> None:
        new = UpstreamTarget(host=r"weird\1host", port=1, scheme="http")
        content = 'set $server "10.0.0.1";\n'
        assert replace_upstream(content, OLD, new) == 'set $server "weird\\1host";\n'


class TestCountUpstreamReferences:
    def test_counts_host_and_port(self) -> None:
        content = render_conf("sso.example.com", "10.0.0.1", 8080)
        assert count_upstream_references(content, OLD) == 2

    def test_counts_upstream_server_lines(self) -> None:
        assert count_upstream_references("server 10.0.0.1:8080;", OLD) == 1

    @pytest.mark.parametrize("content", ["", "# nothing here\n", "server_name x;"])
    def test_zero_without_references(self, content: str) -> None:
        assert count_upstream_references(content, OLD) == 0
