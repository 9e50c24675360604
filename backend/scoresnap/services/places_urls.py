"""
ScoreSnap Web — Same-Origin Places URL Builders
================================================

What:  Pure helpers that build links to our own Places proxy routes.
Why:   Pages embed these in <img src>; the browser calls our server, which
       holds the API key, instead of calling Google with a key in the page.
How:   Percent-encode the user-supplied part exactly the way browsers'
       encodeURIComponent does, then format the query string by hand so the
       output is byte-for-byte predictable.

No I/O, no credentials, no settings lookups beyond the defaults.
"""

from typing import Optional
from urllib.parse import quote

PHOTO_ROUTE = "/api/places/photo"
STATIC_MAP_ROUTE = "/api/places/static-map"

DEFAULT_PHOTO_MAX_WIDTH = 800
DEFAULT_MAP_WIDTH = 800
DEFAULT_MAP_HEIGHT = 400

# Characters encodeURIComponent leaves alone besides ASCII letters and digits
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    """
    Percent-encodes `value` with encodeURIComponent semantics.

    Spaces become %20 (never '+'), '/' '?' '&' '=' '#' are encoded,
    non-ASCII text is encoded as UTF-8.

    >>> encode_uri_component("1600 Amphitheatre Pkwy")
    '1600%20Amphitheatre%20Pkwy'
    """
    return quote(value, safe=_URI_COMPONENT_SAFE)


def get_places_photo_url(
    place_id: Optional[str], max_width: int = DEFAULT_PHOTO_MAX_WIDTH
) -> Optional[str]:
    """
    Returns the same-origin photo URL for a place, or None without a place id.

    >>> get_places_photo_url("ChIJ2eUgeAK6j4ARbn5u_wAGqWA")
    '/api/places/photo?place_id=ChIJ2eUgeAK6j4ARbn5u_wAGqWA&maxwidth=800'
    """
    if not place_id:
        return None
    return f"{PHOTO_ROUTE}?place_id={encode_uri_component(place_id)}&maxwidth={max_width}"


def get_static_map_url(
    address: Optional[str],
    width: int = DEFAULT_MAP_WIDTH,
    height: int = DEFAULT_MAP_HEIGHT,
) -> Optional[str]:
    """
    Returns the same-origin static map URL for an address, or None without one.

    >>> get_static_map_url("1600 Amphitheatre Pkwy")
    '/api/places/static-map?address=1600%20Amphitheatre%20Pkwy&width=800&height=400'
    """
    if not address:
        return None
    return (
        f"{STATIC_MAP_ROUTE}?address={encode_uri_component(address)}"
        f"&width={width}&height={height}"
    )
