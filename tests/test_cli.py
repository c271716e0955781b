"""Komut satırı: mesaj oluşturma ve çözme."""
from pushgate.cli import build_message, main
from pushgate.services.envelope import CONTENT_UNAVAILABLE, encrypt
from pushgate.services.front_matter import split_front_matter


def test_build_message_roundtrips_through_parser():
    message = build_message(
        "Ship it?",
        title="Deploy",
        type_="approval-process",
        webhook_url="https://hooks.example.com/a",
        extra={"nonce": "abc"},
    )
    header, content = split_front_matter(message)
    assert header["title"] == "Deploy"
    assert header["webhook_url"] == "https://hooks.example.com/a"
    assert header["extra"] == {"nonce": "abc"}
    assert content == "Ship it?"


def test_build_message_without_header():
    assert build_message("plain") == "plain"


def test_decrypt_command(capsys):
    ciphertext, nonce = encrypt("merhaba", "k1")
    assert main(["decrypt", ciphertext, "--master-key", "k1", "--nonce", nonce]) == 0
    assert capsys.readouterr().out.strip() == "merhaba"
    assert main(["decrypt", ciphertext, "--master-key", "k2", "--nonce", nonce]) == 1
    assert capsys.readouterr().out.strip() == CONTENT_UNAVAILABLE
