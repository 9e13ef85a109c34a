import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9]+')

# Letters NFKD does not split into base letter + accent
_UNDECOMPOSABLE = str.maketrans({"đ": "d", "Đ": "D"})


def slugify(value: str) -> str:
    """'Phở Hà Nội & Co.' -> 'pho-ha-noi-co'"""
    value = unicodedata.normalize("NFKD", value.translate(_UNDECOMPOSABLE))
    value = value.encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG_CHARS.sub('-', value.lower()).strip('-')
