"""
Mesaj başlığı: isteğe bağlı '---' blokları arasında anahtar: değer satırları,
ardından düz içerik.

    ---
    title: Merhaba
    type: approval-process
    webhook_url: https://example.com/hook
    extra: {"nonce": "..."}
    ---
    Onaylıyor musunuz?

Her satır ilk ':' işaretinden bölünür; değerler olduğu gibi metin kalır
('#', '[...]', '{...}' dahil). Yalnızca 'extra' yapısal (JSON/YAML) okunur.
"""
import re
import textwrap

import yaml

from pushgate.core.errors import ValidationError

_HEADER_RE = re.compile(r"^---[ \t]*\r?\n(.*?)\r?\n[ \t]*---[ \t]*(?:\r?\n|$)", re.S)

STRUCTURED_KEYS = ("extra",)


def _parse_lines(block: str) -> dict[str, list[str]]:
    """Anahtar -> [ilk satır değeri, girintili devam satırları...]."""
    result: dict[str, list[str]] = {}
    current = None
    for line in block.splitlines():
        if not line.strip():
            continue
        if line[:1] in (" ", "\t") and current is not None:
            result[current].append(line)
            continue
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            current = None
            continue
        result[key] = [value.strip()]
        current = key
    return result


def _structured(key: str, lines: list[str]):
    text = "\n".join([lines[0], textwrap.dedent("\n".join(lines[1:]))]).strip()
    if not text:
        return None
    # BaseLoader: skalerler str kalır; JSON da geçerli YAML akış sözdizimidir
    try:
        return yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError:
        raise ValidationError(f"Başlık alanı '{key}' geçerli bir JSON/YAML eşlemesi değil.")


def split_front_matter(raw: str) -> tuple[dict, str]:
    """(başlık, içerik) döner. Başlık yoksa boş sözlük ve tüm metin."""
    text = (raw or "").strip()
    match = _HEADER_RE.match(text)
    if not match:
        return {}, text
    header: dict = {}
    for key, lines in _parse_lines(match.group(1)).items():
        if key in STRUCTURED_KEYS:
            header[key] = _structured(key, lines)
        elif len(lines) > 1:
            raise ValidationError(f"Başlık alanı '{key}' düz metin olmalı.")
        else:
            header[key] = lines[0]
    return header, text[match.end():].strip()
