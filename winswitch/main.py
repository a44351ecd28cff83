"""Main entry point for the window switcher."""
import asyncio
import sys
from typing import Any, Dict, List, Optional

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from winswitch.database.document_store import DocumentStore
from winswitch.database.factory import create_document_store
from winswitch.session.controller import SessionController
from winswitch.usage.store import DEFAULT_PREFIX, UsageStore
from winswitch.utils.config import get_config, load_config_and_logging
from winswitch.utils.exceptions import (
    ConfigError, ExternalToolError, ParsingError, StoreError
)
from winswitch.utils.logging import get_logger
from winswitch.windows.factory import create_window_backend

logger = get_logger(__name__)

class WindowSwitcherCLI:
    """Terminal host for the switcher: an InquirerPy fuzzy prompt."""

    def __init__(self, config: Dict[str, Any], store: DocumentStore):
        """Initialize the CLI interface."""
        self.config = config
        self.store = store
        self.controller: Optional[SessionController] = None
        self.items: List[Dict[str, str]] = []
        self.is_shutting_down = False

    @classmethod
    async def create(cls, config: Dict[str, Any]) -> 'WindowSwitcherCLI':
        """Create and initialize a new CLI instance."""
        store = await create_document_store(config)
        cli = cls(config, store)

        usage_store = UsageStore(store, prefix=get_config(config, "store.prefix", DEFAULT_PREFIX))
        cli.controller = SessionController.from_config(
            config, create_window_backend(config), usage_store
        )
        return cli

    def render(self, items: List[Dict[str, str]]) -> None:
        """Render callback handed to the controller."""
        self.items = items

    async def run(self, query: str = "") -> int:
        """Show the window list until the user picks a window or quits."""
        if query:
            await self.controller.search(query, self.render)
        else:
            await self.controller.enter(self.render)

        while True:
            if not self.items:
                print("No matching windows.")
                return 1

            choice = await inquirer.fuzzy(
                message=get_config(self.config, "ui.prompt", "Switch to:"),
                choices=[
                    Choice(value=item, name=item["title"] or item["window_id"])
                    for item in self.items
                ],
                mandatory=False
            ).execute_async()

            if choice is None:
                return 0

            await self.controller.select(choice)

            if not get_config(self.config, "ui.stay_open", False):
                return 0
            await self.controller.wait_for_refresh()

    async def cleanup(self):
        """Cleanup resources."""
        if self.is_shutting_down:
            return  # Prevent multiple shutdown attempts
        self.is_shutting_down = True

        try:
            if self.controller:
                await self.controller.cleanup()
            await self.store.close()
        except Exception as e:
            logger.error(f"Error during cleanup: {e}")

async def async_main(argv: List[str]) -> int:
    """Async main entry point."""
    try:
        config = load_config_and_logging()
        cli = await WindowSwitcherCLI.create(config)
    except (ConfigError, StoreError) as e:
        print(f"winswitch: {e}", file=sys.stderr)
        return 2

    try:
        return await cli.run(" ".join(argv).strip())
    except (ExternalToolError, ParsingError, StoreError) as e:
        logger.error(f"Switcher failed: {e}", exc_info=True)
        print(f"winswitch: {e}", file=sys.stderr)
        return 1
    finally:
        await cli.cleanup()

def main():
    """Main entry point."""
    try:
        sys.exit(asyncio.run(async_main(sys.argv[1:])))
    except KeyboardInterrupt:
        logger.info("Shutting down")

if __name__ == "__main__":
    main()
