"""AES-256-GCM 加密工具（postgres 账本后端存储账号密码）"""

import base64
import logging
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from anyrouter_checkin.config.settings import get_settings

logger = logging.getLogger(__name__)

NONCE_SIZE = 12


def parse_key(key_str: str) -> bytes:
    """
    解析加密密钥（32 字节原始密钥，或其 Base64 编码）

    Raises:
        ValueError: 密钥无效
    """
    if not key_str:
        raise ValueError("未配置加密密钥 ENCRYPTION_KEY")

    if len(key_str) == 32:
        return key_str.encode()

    try:
        key_bytes = base64.b64decode(key_str, validate=True)
    except ValueError as e:
        logger.error(f"无效的加密密钥配置: {type(e).__name__}: {e}")
        raise ValueError("无效的加密密钥配置。密钥应为 32 字节的原始密钥，或 32 字节密钥的 Base64 编码。") from e

    if len(key_bytes) != 32:
        raise ValueError(f"Base64 解码后的密钥长度为 {len(key_bytes)} 字节，应为 32 字节")
    return key_bytes


class PasswordCipher:
    """账号密码加解密（nonce + 密文，Base64 编码）"""

    def __init__(self, key: str | None = None):
        self._aesgcm = AESGCM(parse_key(key if key is not None else get_settings().encryption_key))

    def encrypt(self, password: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, password.encode(), None)
        return base64.b64encode(nonce + ciphertext).decode()

    def decrypt(self, encrypted_data: str) -> str:
        combined = base64.b64decode(encrypted_data)
        nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
        return self._aesgcm.decrypt(nonce, ciphertext, None).decode()
