"""
Command-line interface for blog administration.

Exports and imports ZIP backups through the API, validates archives offline, obtains
tokens and creates the initial admin user directly in MongoDB.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import httpx
from pymongo.errors import ConnectionFailure

from folio_blog.config import settings
from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger
from folio_blog.services.auth_service import auth_service
from folio_blog.services.backup_archive import inspect_archive

logger = get_logger(prefix="[BackupCLI]")


class BackupCLI:
    """CLI tool for backup and admin operations."""

    def __init__(self, base_url: str, api_token: Optional[str] = None):
        """
        Initialize the CLI.

        Args:
            base_url: Base URL of the blog API
            api_token: Bearer token for the admin (needed by export/import)
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}

    def _require_token(self) -> bool:
        if not self.api_token:
            logger.error("This command needs --token (see the 'login' command)")
            return False
        return True

    async def export(self, output_path: str) -> bool:
        """
        Download a backup archive.

        Args:
            output_path: Where to write the ZIP

        Returns:
            True if successful, False otherwise
        """
        if not self._require_token():
            return False
        logger.info(f"Starting export to {output_path}")

        try:
            async with httpx.AsyncClient(timeout=300.0) as client:
                response = await client.get(f"{self.base_url}/api/backup/export", headers=self.headers)

            if response.status_code != 200:
                logger.error(f"Export failed: {response.text}")
                return False

            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_bytes(response.content)

            logger.info(f"Export saved to {output_path} ({len(response.content)} bytes)")
            return True

        except httpx.HTTPError as e:
            logger.error(f"Export failed: {e}", exc_info=True)
            return False

    async def import_package(self, input_path: str) -> bool:
        """
        Upload a backup archive and print the per-resource report.

        Returns:
            True if every record imported, False if the upload failed or any record failed
        """
        if not self._require_token():
            return False
        logger.info(f"Starting import from {input_path}")

        input_file = Path(input_path)
        if not input_file.exists():
            logger.error(f"Input file not found: {input_path}")
            return False

        try:
            async with httpx.AsyncClient(timeout=300.0) as client:
                with open(input_file, "rb") as f:
                    files = {"file": (input_file.name, f, "application/zip")}
                    response = await client.post(
                        f"{self.base_url}/api/backup/import",
                        files=files,
                        headers=self.headers,
                    )
        except httpx.HTTPError as e:
            logger.error(f"Import failed: {e}", exc_info=True)
            return False

        if response.status_code != 200:
            logger.error(f"Import failed: {response.text}")
            return False

        report = response.json()
        logger.info(f"Backup version: {report.get('version')}")
        for resource, result in report.get("results", {}).items():
            logger.info(f"  {resource}: {result['success']} imported, {result['failed']} failed")
            for error in result.get("errors", []):
                logger.warning(f"    - {error['name']}: {error['error']}")
        logger.info(f"Total: {report.get('totalSuccess', 0)} imported, {report.get('totalFailed', 0)} failed")
        return report.get("totalFailed", 0) == 0

    async def validate(self, input_path: str) -> bool:
        """
        Validate a backup archive locally, without contacting the API.

        Returns:
            True if valid, False otherwise
        """
        logger.info(f"Validating backup archive: {input_path}")
        input_file = Path(input_path)
        if not input_file.exists():
            logger.error(f"Input file not found: {input_path}")
            return False

        report = inspect_archive(input_file.read_bytes())
        logger.info(f"  Version: {report.version}")
        logger.info(f"  Media files: {report.media_files}")
        for resource, count in report.counts.items():
            logger.info(f"  {resource}: {count} records")
        for error in report.errors:
            logger.error(f"  {error}")

        if report.valid:
            logger.info("Archive is valid")
        return report.valid

    async def login(self, username: str, password: str) -> bool:
        """Obtain a bearer token and print it to stdout."""
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.base_url}/api/auth/login",
                    json={"username": username, "password": password},
                )
        except httpx.HTTPError as e:
            logger.error(f"Login failed: {e}", exc_info=True)
            return False

        if response.status_code != 200:
            logger.error(f"Login failed: {response.text}")
            return False
        print(response.json()["token"])
        return True

    async def create_admin(self, username: Optional[str] = None, password: Optional[str] = None) -> bool:
        """Create the admin user directly in MongoDB if it does not exist yet."""
        username = username or settings.DEFAULT_ADMIN_USERNAME
        password = password or settings.DEFAULT_ADMIN_PASSWORD.get_secret_value()

        try:
            await db_manager.connect()
        except ConnectionFailure as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            return False
        try:
            await db_manager.create_indexes()
            created = await auth_service.ensure_admin(username, password)
        finally:
            await db_manager.disconnect()

        if created:
            logger.info(f"Admin user '{username}' created")
        else:
            logger.info(f"Admin user '{username}' already exists")
        return True


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Folio Blog administration CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--url",
        default="http://localhost:3001",
        help="Base URL of the blog API (default: http://localhost:3001)",
    )
    parser.add_argument(
        "--token",
        help="Admin bearer token (required for export and import)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    export_parser = subparsers.add_parser("export", help="Download a backup archive")
    export_parser.add_argument("--output", required=True, help="Output path for the ZIP archive")

    import_parser = subparsers.add_parser("import", help="Import a backup archive")
    import_parser.add_argument("--input", required=True, help="Path to the ZIP archive")

    validate_parser = subparsers.add_parser("validate", help="Validate a backup archive locally")
    validate_parser.add_argument("--input", required=True, help="Path to the ZIP archive")

    login_parser = subparsers.add_parser("login", help="Print a bearer token")
    login_parser.add_argument("--username", required=True)
    login_parser.add_argument("--password", required=True)

    admin_parser = subparsers.add_parser("create-admin", help="Create the admin user if missing")
    admin_parser.add_argument("--username", help="Admin username (default: DEFAULT_ADMIN_USERNAME)")
    admin_parser.add_argument("--password", help="Admin password (default: DEFAULT_ADMIN_PASSWORD)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    cli = BackupCLI(base_url=args.url, api_token=args.token)

    if args.command == "export":
        success = asyncio.run(cli.export(output_path=args.output))
    elif args.command == "import":
        success = asyncio.run(cli.import_package(input_path=args.input))
    elif args.command == "validate":
        success = asyncio.run(cli.validate(input_path=args.input))
    elif args.command == "login":
        success = asyncio.run(cli.login(username=args.username, password=args.password))
    elif args.command == "create-admin":
        success = asyncio.run(cli.create_admin(username=args.username, password=args.password))
    else:
        parser.print_help()
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
