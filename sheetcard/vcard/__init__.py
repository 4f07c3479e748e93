"""vCard serialization of ContactRecord lists."""

from .serializer import (
    VCARD_VERSION,
    VCF_MEDIA_TYPE,
    clean_phone,
    escape_vcard_text,
    generate_vcard,
    generate_vcf_document,
    get_vcf_data_url,
    to_vcf_bytes,
)

__all__ = [
    "VCARD_VERSION",
    "VCF_MEDIA_TYPE",
    "clean_phone",
    "escape_vcard_text",
    "generate_vcard",
    "generate_vcf_document",
    "get_vcf_data_url",
    "to_vcf_bytes",
]
