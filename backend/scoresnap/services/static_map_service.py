"""
ScoreSnap Web — Static Map Service
===================================

What:  Builds the signed Google Static Maps URL for an address.
Why:   The browser must never see the API key in our page source, so the
       page links to /api/places/static-map and the route redirects to the
       URL built here. We never download the image ourselves.
How:   Pure string construction. The address is percent-encoded once for
       `center` and once for the marker location; the key is appended last.

URL shape:
    {base}/staticmap?center=<addr>&zoom=15&size=<w>x<h>
                    &markers=color:red%7C<addr>&key=<key>

    %7C is the literal '|' separating marker style from marker location.
"""

import logging

from scoresnap.config import Settings, settings
from scoresnap.exceptions import ConfigurationError, MapGenerationError, scrub_secret
from scoresnap.schemas.places import StaticMapRequest
from scoresnap.services.places_urls import encode_uri_component

logger = logging.getLogger(__name__)


class StaticMapService:
    """
    Turns a StaticMapRequest plus a credential into an external image URL.

    Stateless apart from the settings it was built with; the credential is
    passed per call and never stored on the instance.
    """

    def __init__(self, app_settings: Settings = settings):
        self.base_url = f"{app_settings.maps_api_base_url}/staticmap"
        self.zoom = app_settings.static_map_zoom
        self.marker_color = app_settings.static_map_marker_color

    def build_url(self, map_request: StaticMapRequest, api_key: str) -> str:
        """
        Build the external static map URL.

        Raises:
            ConfigurationError: api_key is empty.
            MapGenerationError: anything else went wrong while building;
                `details` carries the cause with the key scrubbed out.
        """
        if not api_key:
            raise ConfigurationError()

        try:
            return self._compose(map_request, api_key)
        except Exception as e:
            message = scrub_secret(str(e) or type(e).__name__, api_key)
            # Address is user data and the key is a secret: neither is logged
            logger.error("Static map URL construction failed: %s", message)
            raise MapGenerationError(
                details=message, context={"error_type": type(e).__name__}
            )

    def _compose(self, map_request: StaticMapRequest, api_key: str) -> str:
        location = encode_uri_component(map_request.address)
        marker = f"color:{encode_uri_component(self.marker_color)}%7C{location}"
        return (
            f"{self.base_url}"
            f"?center={location}"
            f"&zoom={self.zoom}"
            f"&size={map_request.size}"
            f"&markers={marker}"
            f"&key={encode_uri_component(api_key)}"
        )

