"""Helper modules for the POS device bridge."""

__all__ = [
    "i18n",
    "scale_barcode",
    "scan_buffer",
]
