# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
"""
RSA signatures over the digest of the control segment.

apk-tools verifies `.SIGN.RSA.<key>.pub` entries as PKCS#1 v1.5 signatures
of the SHA-1 digest of the (compressed) control segment, so the digest is
signed as-is, without hashing it once more.
"""

import os

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from . import exception
from .trace_decorator import getLog, traceLog

SHA1_DIGEST_SIZE = 20


def signature_name(signing_key):
    """name of the signature entry for the private key file `signing_key`"""
    return ".SIGN.RSA.%s.pub" % os.path.basename(signing_key)


def _read_key(key_path):
    try:
        with open(key_path, "rb") as f:
            return f.read()
    except OSError as e:
        raise exception.SignError("unable to read signing key %s: %s" % (key_path, e)) from e


def load_private_key(key_path, passphrase=None):
    """RSA private key from the PEM file `key_path`, decrypted with `passphrase` if needed"""
    data = _read_key(key_path)
    password = passphrase.encode("utf-8") if passphrase else None
    try:
        try:
            key = serialization.load_pem_private_key(data, password=password)
        except TypeError:
            if password is None:
                raise
            # passphrase configured, but this key is not encrypted
            getLog().debug("signing key %s is not encrypted, ignoring passphrase", key_path)
            key = serialization.load_pem_private_key(data, password=None)
    except TypeError as e:
        raise exception.SignError("signing key %s is encrypted, passphrase required" % key_path) from e
    except (ValueError, UnsupportedAlgorithm) as e:
        raise exception.SignError("unable to load signing key %s: %s" % (key_path, e)) from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise exception.SignError("signing key %s is not an RSA key" % key_path)
    return key


@traceLog()
def rsa_sign_sha1_digest(digest, key_path, passphrase=None):
    """PKCS#1 v1.5 signature of the SHA-1 `digest` with the key in `key_path`"""
    if len(digest) != SHA1_DIGEST_SIZE:
        raise exception.SignError("digest must be %d bytes long, got %d"
                                  % (SHA1_DIGEST_SIZE, len(digest)))

    key = load_private_key(key_path, passphrase)
    try:
        return key.sign(digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA1()))
    except (ValueError, UnsupportedAlgorithm) as e:
        raise exception.SignError("unable to sign digest with %s: %s" % (key_path, e)) from e


def rsa_verify_sha1_digest(digest, signature, pubkey_path):
    """True when `signature` is a valid signature of `digest` for the PEM public key"""
    with open(pubkey_path, "rb") as f:
        pubkey = serialization.load_pem_public_key(f.read())
    try:
        pubkey.verify(signature, digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA1()))
    except InvalidSignature:
        return False
    return True
