"""
Merging sprite sheet metadata into the script data and serializing the datasets.
"""

import logging
from dataclasses import dataclass
from typing import Dict

from ..scripting.host import ScriptHost, ProcessResponse, RECIPE_MODES
from .atlas import AtlasResult


logger = logging.getLogger(__name__)


@dataclass
class Datasets:
    """JSON documents for each recipe mode."""
    normal: str
    expensive: str


class DataAssembler:
    """Feeds atlas metadata back to the script layer and collects its JSON output."""

    def __init__(self, host: ScriptHost):
        self.host = host

    def sprite_metadata(self, atlas: AtlasResult) -> Dict[str, object]:
        return {
            "hash": atlas.sprite_hash,
            "width": atlas.width,
            "height": atlas.height,
        }

    def assemble(self, response: ProcessResponse, atlas: AtlasResult) -> Datasets:
        """
        Record the sheet's hash and size in data.sprites, then serialize the
        data once per recipe mode.

        The serializer's formatting is kept as is.
        """
        self.host.update_sprites(response, self.sprite_metadata(atlas))

        documents = {}
        for mode in RECIPE_MODES:
            documents[mode] = self.host.dataset_json(response, mode)
            logger.debug(f"Serialized {mode} dataset ({len(documents[mode])} bytes)")

        return Datasets(**documents)
