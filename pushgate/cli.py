"""
Komut satırı göndericisi.

    python -m pushgate.cli send --url http://localhost:8000 --token <push token> \
        --title "Dağıtım" --type approval-process --webhook-url https://ci.example.com/hook \
        "Üretime çıkılsın mı?"

    python -m pushgate.cli send ... --master-key "$MASTER_KEY" "gizli içerik"   # type: encrypted
    python -m pushgate.cli decrypt --master-key "$MASTER_KEY" --nonce <nonce> <ciphertext>
"""
import argparse
import json
import sys

import httpx

from pushgate.core.errors import CryptoError
from pushgate.services.envelope import CONTENT_UNAVAILABLE, decrypt, encrypt


def build_message(
    content: str,
    title: str | None = None,
    category: str | None = None,
    group: str | None = None,
    type_: str | None = None,
    icon_url: str | None = None,
    webhook_url: str | None = None,
    topic: str | None = None,
    extra: dict | None = None,
) -> str:
    """Ön başlıklı mesaj metni. Boş alanlar yazılmaz."""
    fields = [
        ("title", title),
        ("category", category),
        ("group", group),
        ("type", type_),
        ("icon_url", icon_url),
        ("webhook_url", webhook_url),
        ("topic", topic),
    ]
    lines = [f"{key}: {value}" for key, value in fields if value]
    if extra:
        lines.append(f"extra: {json.dumps(extra)}")
    if not lines:
        return content
    return "---\n" + "\n".join(lines) + "\n---\n" + content


def run_send(args: argparse.Namespace) -> int:
    content = args.content if args.content != "-" else sys.stdin.read()
    type_ = args.type
    extra = json.loads(args.extra) if args.extra else None
    if args.master_key:
        ciphertext, nonce = encrypt(content, args.master_key)
        content = ciphertext
        type_ = "encrypted"
        extra = {**(extra or {}), "nonce": nonce}
    message = build_message(
        content,
        title=args.title,
        category=args.category,
        group=args.group,
        type_=type_,
        icon_url=args.icon_url,
        webhook_url=args.webhook_url,
        topic=args.topic,
        extra=extra,
    )
    url = args.url.rstrip("/") + "/api/push"
    try:
        response = httpx.post(url, json={"pushToken": args.token, "content": message}, timeout=args.timeout)
    except httpx.HTTPError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(response.text)
    if response.status_code >= 400:
        return 1
    body = response.json()
    return 0 if body.get("success") else 2


def run_decrypt(args: argparse.Namespace) -> int:
    try:
        print(decrypt(args.ciphertext, args.master_key, args.nonce))
    except CryptoError as e:
        print(CONTENT_UNAVAILABLE)
        print(f"({e})", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pushgate",
        description="Pushgate bildirim gönderme aracı",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    send_parser = subparsers.add_parser("send", help="Bildirim gönder")
    send_parser.add_argument("content", help="Mesaj içeriği ('-' ise stdin)")
    send_parser.add_argument("--url", default="http://127.0.0.1:8000", help="Sunucu adresi")
    send_parser.add_argument("--token", required=True, help="Push token")
    send_parser.add_argument("--title")
    send_parser.add_argument("--category")
    send_parser.add_argument("--group")
    send_parser.add_argument("--type", choices=["plain", "encrypted", "approval-process"])
    send_parser.add_argument("--icon-url")
    send_parser.add_argument("--webhook-url")
    send_parser.add_argument("--topic")
    send_parser.add_argument("--extra", help="JSON nesnesi")
    send_parser.add_argument("--master-key", help="Verilirse içerik şifrelenir (type: encrypted)")
    send_parser.add_argument("--timeout", type=float, default=30.0)
    send_parser.set_defaults(func=run_send)

    decrypt_parser = subparsers.add_parser("decrypt", help="Şifreli içeriği çöz")
    decrypt_parser.add_argument("ciphertext")
    decrypt_parser.add_argument("--master-key", required=True)
    decrypt_parser.add_argument("--nonce", required=True)
    decrypt_parser.set_defaults(func=run_decrypt)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
