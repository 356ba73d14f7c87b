"""
Import credentials from CSV files and export them back.

Exports contain plaintext passwords; the file is created with owner-only
permissions.
"""

import csv
import logging
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

from passlane import config
from passlane.exceptions import CorruptDataError, StorageIOError
from passlane.models import Credentials
from passlane.utils import set_private_file_permissions

logger = logging.getLogger(__name__)


class CSVImporter:
    """Reads credentials from CSV files exported by browsers or other managers."""

    HEADER_MAPPINGS = config.CSV_HEADER_MAPPINGS

    def import_from_file(self, filepath: str) -> List[Credentials]:
        """
        Import credentials from a CSV file.

        Args:
            filepath: Path to CSV file

        Returns:
            List of credentials; rows missing a service, username or password are skipped
        """
        entries = []
        try:
            with open(filepath, 'r', encoding='utf-8-sig', newline='') as f:
                sample = f.read(1024)
                f.seek(0)

                try:
                    delimiter = csv.Sniffer().sniff(sample, delimiters=',;\t').delimiter
                except csv.Error:
                    delimiter = ','

                reader = csv.DictReader(f, delimiter=delimiter)
                header_map = self._map_headers(reader.fieldnames or [])

                for row in reader:
                    entry = self._parse_row(row, header_map)
                    if entry:
                        entries.append(entry)
                    else:
                        logger.debug(f"Skipping incomplete CSV row {reader.line_num}")
        except csv.Error as e:
            raise CorruptDataError(f"Unable to parse {filepath}: {e}") from e
        except OSError as e:
            raise StorageIOError(f"Unable to read {filepath}: {e.strerror}") from e

        logger.info(f"Read {len(entries)} credentials from {filepath}")
        return entries

    def _map_headers(self, headers: List[str]) -> Dict[str, str]:
        """Map CSV headers to our field names."""
        header_map = {}

        for field, variations in self.HEADER_MAPPINGS.items():
            for header in headers:
                if header.lower().strip() in variations and header not in header_map.values():
                    header_map[field] = header
                    break

        # Fall back to column order: service, username, password
        for position, field in enumerate(config.CSV_HEADERS):
            if (field not in header_map and len(headers) > position
                    and headers[position] not in header_map.values()):
                header_map[field] = headers[position]

        return header_map

    def _parse_row(self, row: Dict[str, str], header_map: Dict[str, str]) -> Optional[Credentials]:
        """Parse a CSV row into Credentials."""
        service = (row.get(header_map.get('service', '')) or '').strip()
        username = (row.get(header_map.get('username', '')) or '').strip()
        password = (row.get(header_map.get('password', '')) or '').strip()

        if not service or not username or not password:
            return None

        # Browsers export the login URL as the name; keep just the host
        if service.startswith('http://') or service.startswith('https://'):
            service = urlparse(service).netloc or service

        return Credentials(service=service, username=username, password=password)


class CSVExporter:
    """Writes credentials in the ``service,username,password`` format."""

    def export_to_file(self, filepath: str, credentials: Sequence[Credentials]) -> int:
        try:
            with open(filepath, 'w', encoding='utf-8', newline='') as f:
                set_private_file_permissions(filepath)
                writer = csv.DictWriter(f, fieldnames=list(config.CSV_HEADERS))
                writer.writeheader()
                for creds in credentials:
                    writer.writerow(creds.to_dict())
        except OSError as e:
            raise StorageIOError(f"Unable to write {filepath}: {e.strerror}") from e
        logger.info(f"Exported {len(credentials)} credentials to {filepath}")
        return len(credentials)
