"""Webhook URL SSRF denetimi."""
import pytest

from pushgate.services.network import is_http_url, is_local_network_url


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost/hook",
        "http://api.localhost/hook",
        "http://printer.local/",
        "http://127.0.0.1:8080/",
        "http://10.0.0.5/",
        "http://172.16.3.4/",
        "http://192.168.0.1/",
        "http://169.254.169.254/latest/meta-data",
        "http://0.0.0.0/",
        "http://[::1]/",
        "http://[::ffff:127.0.0.1]/",
        "http://[fe80::1]/",
        "http://2130706433/",
        "http://127.1/",
        "http://0177.0.0.1/",
        "http://0x7f000001/",
        "http://0x7f.0.0.1:8080/hook",
        "http://10.1/",
        "http://192.168.1/",
        "http://metadata.google.internal/",
    ],
)
def test_local_urls(url):
    assert is_local_network_url(url)


@pytest.mark.parametrize(
    "url",
    ["https://hooks.example.com/approve", "https://8.8.8.8/", "https://8.8.2056/", "https://cafe.example/", "http://[2001:4860:4860::8888]/"],
)
def test_public_urls(url):
    assert not is_local_network_url(url)


def test_is_http_url():
    assert is_http_url("https://example.com/x")
    assert not is_http_url("ftp://example.com/x")
    assert not is_http_url("https://")
    assert not is_http_url("javascript:alert(1)")
