"""
MetaProxy Signing Module

Resolves delegated credential references into request authentication.
"""

from metaproxy.signing.base import Signer, SignerRegistry, parse_reference
from metaproxy.signing.signers import (
    ArbitrarySigner,
    AwsV4Signer,
    BasicSigner,
    BearerSigner,
    default_registry,
)

__all__ = [
    "Signer",
    "SignerRegistry",
    "parse_reference",
    "ArbitrarySigner",
    "AwsV4Signer",
    "BasicSigner",
    "BearerSigner",
    "default_registry",
]
