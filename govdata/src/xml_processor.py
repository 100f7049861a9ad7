"""
XML Processor Module
Turns FPDS ATOM feed XML into flat per-entry dictionaries.

Each entry is flattened to a single level: nested element names are
joined with ``__`` (e.g. ``content__award__vendor__vendorHeader__vendorName``)
so the field mapper can look values up by a fixed path-key.
"""

import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterator, List, Mapping, Tuple
import logging

from .errors import GovDataError

logger = logging.getLogger(__name__)

PATH_DELIMITER = "__"
TEXT_NODE_NAME = "#text"


def _local_name(tag: str) -> str:
    """Drop the ``{namespace}`` part of an ElementTree tag or attribute name."""
    if tag.startswith('{'):
        return tag.split('}', 1)[1]
    return tag


class XMLProcessor:
    """
    Parse, extract and flatten FPDS feed entries.
    """

    def __init__(self, delimiter: str = PATH_DELIMITER):
        self.delimiter = delimiter

    def parse(self, xml_data: str) -> Dict[str, Any]:
        """
        Parse XML text into a nested dictionary.

        The root element becomes the single top-level key. Attributes are
        merged into their element's dictionary, element text next to
        attributes or children is stored under ``#text``, and repeated
        sibling elements become lists.

        Args:
            xml_data: Raw XML response body

        Returns:
            Nested dictionary tree

        Raises:
            GovDataError: PARSE if the input is empty or malformed
        """
        if not xml_data or not xml_data.strip():
            raise GovDataError.parse("XML data is empty or null")

        try:
            root = ET.fromstring(xml_data)
        except ET.ParseError as e:
            raise GovDataError.parse(f"Failed to parse XML: {e}", e) from e

        return {_local_name(root.tag): self._element_to_value(root)}

    def _element_to_value(self, element: ET.Element) -> Any:
        children = list(element)
        text = (element.text or '').strip()

        if not children and not element.attrib:
            return text

        node: Dict[str, Any] = {
            _local_name(name): value.strip() for name, value in element.attrib.items()
        }
        repeated = set()

        for child in children:
            key = _local_name(child.tag)
            value = self._element_to_value(child)

            if key in repeated:
                node[key].append(value)
            elif key in node:
                node[key] = [node[key], value]
                repeated.add(key)
            else:
                node[key] = value

        if text:
            node[TEXT_NODE_NAME] = text

        return node

    def extract_entries(self, parsed_data: Mapping[str, Any]) -> List[Any]:
        """
        Return the ``feed.entry`` list from a parsed tree.

        A missing feed or entry means "no results" and yields an empty
        list; a single entry is wrapped in a one-element list.
        """
        feed = parsed_data.get('feed') if isinstance(parsed_data, Mapping) else None
        if not isinstance(feed, Mapping):
            return []

        entries = feed.get('entry')
        if not entries:
            return []

        return list(entries) if isinstance(entries, list) else [entries]

    def flatten(self, entry: Mapping[str, Any], prefix: str = '') -> Dict[str, Any]:
        """
        Flatten nested mappings into ``delimiter``-joined path-keys.

        Traversal is depth-first in document order using an explicit
        stack. Lists and scalars are leaves and are stored unchanged.

        Args:
            entry: Nested mapping for one feed entry
            prefix: Optional path prefix for every key

        Returns:
            Single-level dictionary of path-key -> value
        """
        result: Dict[str, Any] = {}
        if not isinstance(entry, Mapping):
            return result

        stack: List[Tuple[str, Iterator[Tuple[str, Any]]]] = [(prefix, iter(entry.items()))]

        while stack:
            path, items = stack[-1]
            for key, value in items:
                key_path = f"{path}{self.delimiter}{key}" if path else key
                if isinstance(value, Mapping):
                    stack.append((key_path, iter(value.items())))
                    break
                result[key_path] = value
            else:
                stack.pop()

        return result

    def process(self, xml_data: str) -> List[Dict[str, Any]]:
        """
        Parse a feed page and return its flattened entries in source order.
        """
        parsed = self.parse(xml_data)
        entries = self.extract_entries(parsed)
        logger.debug(f"Extracted {len(entries)} entries from feed")
        return [self.flatten(entry) for entry in entries]
