"""サインイン試行ごとのnonce生成。"""

from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Callable

logger = logging.getLogger(__name__)

NONCE_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVXYZabcdefghijklmnopqrstuvwxyz-._"
DEFAULT_NONCE_LENGTH = 32
BATCH_SIZE = 16


class EntropySourceError(RuntimeError):
    """安全な乱数源が失敗した場合の例外。

    プラットフォーム障害として扱い、サインインエラーには分類しない。
    """


def generate_nonce(
    length: int = DEFAULT_NONCE_LENGTH,
    *,
    random_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """暗号論的に安全なnonceを生成する。

    乱数バイトを16バイト単位で取得し、文字集合の大きさ未満のバイトだけを採用する
    （剰余による偏りを避けるため、範囲外のバイトは捨てる）。

    Args:
        length: 生成する文字数。
        random_bytes: 乱数バイトの取得関数。

    Returns:
        str: NONCE_CHARSETの文字だけからなる長さlengthの文字列。

    Raises:
        ValueError: lengthが1未満の場合。
        EntropySourceError: 乱数源が失敗した場合。
    """

    if length < 1:
        raise ValueError(f"nonceの長さは1以上である必要があります: {length}")

    charset_size = len(NONCE_CHARSET)
    result: list[str] = []
    remaining = length

    while remaining > 0:
        batch = _draw_batch(random_bytes)
        for value in batch:
            if remaining == 0:
                break
            if value < charset_size:
                result.append(NONCE_CHARSET[value])
                remaining -= 1

    return "".join(result)


def hash_nonce(raw_nonce: str) -> str:
    """nonceのSHA-256ダイジェストを16進文字列で返す。"""

    return hashlib.sha256(raw_nonce.encode("utf-8")).hexdigest()


def _draw_batch(random_bytes: Callable[[int], bytes]) -> bytes:
    try:
        batch = random_bytes(BATCH_SIZE)
    except (OSError, NotImplementedError) as exc:
        logger.critical("Unable to generate nonce: secure random source failed: %s", exc)
        raise EntropySourceError("nonceを生成できません。安全な乱数源が利用できません。") from exc

    if len(batch) != BATCH_SIZE:
        logger.critical("Unable to generate nonce: short read (%d bytes)", len(batch))
        raise EntropySourceError("nonceを生成できません。乱数バイトが不足しています。")
    return batch
