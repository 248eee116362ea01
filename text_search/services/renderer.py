"""Headless browser rendering of catalog pages.

Pages are rendered in a single long-lived Chrome session so that text
written by page scripts is captured. Selenium calls are blocking and run
in a worker thread.
"""

import asyncio
import os
from typing import Any, Protocol

import logfire

from text_search.constants import BROWSER_PAGE_LOAD_TIMEOUT_SECONDS
from text_search.exceptions import FetchError


class PageRenderer(Protocol):
    """Protocol for a browser session that renders pages."""

    async def navigate(self, url: str, allow_scripts: bool) -> None:
        """Load `url`, executing page scripts only when `allow_scripts`.

        Raises:
            FetchError: If the page cannot be loaded
        """
        ...

    async def get_body_text(self) -> str:
        """Visible text of the current page body.

        Raises:
            FetchError: If the page has no body element
        """
        ...

    async def get_title(self) -> str:
        """Title of the current page.

        Raises:
            FetchError: If the title cannot be read
        """
        ...

    async def dispose(self) -> None:
        """Close the session."""
        ...


class ChromePageRenderer:
    """PageRenderer over undetected headless Chrome."""

    def __init__(self, timeout: float = BROWSER_PAGE_LOAD_TIMEOUT_SECONDS):
        """Initialize the renderer. The browser starts on first navigation.

        Args:
            timeout: Page load timeout in seconds
        """
        self._timeout = timeout
        self._driver: Any = None
        self._url: str | None = None

    def _start_driver(self) -> Any:
        """Start Chrome.

        Set CHROME_VERSION_MAIN to your Chrome major version (e.g. 143) if you see
        "This version of ChromeDriver only supports Chrome version X".
        """
        import undetected_chromedriver as uc

        options = uc.ChromeOptions()
        options.headless = True
        version_main = os.environ.get("CHROME_VERSION_MAIN")
        kwargs: dict = {"options": options}
        if version_main is not None:
            try:
                kwargs["version_main"] = int(version_main)
            except ValueError:
                logfire.warning(
                    "Ignoring invalid CHROME_VERSION_MAIN", value=version_main
                )
        driver = uc.Chrome(**kwargs)
        driver.set_page_load_timeout(self._timeout)
        logfire.info("Browser session started", timeout=self._timeout)
        return driver

    def _navigate_sync(self, url: str, allow_scripts: bool) -> None:
        from selenium.common.exceptions import WebDriverException

        try:
            if self._driver is None:
                self._driver = self._start_driver()
            self._driver.execute_cdp_cmd(
                "Emulation.setScriptExecutionDisabled", {"value": not allow_scripts}
            )
            self._driver.get(url)
        except WebDriverException as e:
            raise FetchError(f"Unable to render {url}: {e.msg or e}", url=url) from e
        self._url = url

    def _body_text_sync(self) -> str:
        from selenium.common.exceptions import WebDriverException
        from selenium.webdriver.common.by import By

        if self._driver is None:
            raise FetchError("No page has been loaded")
        try:
            return self._driver.find_element(By.TAG_NAME, "body").text
        except WebDriverException as e:
            raise FetchError(
                f"Unable to read the body of {self._url}", url=self._url
            ) from e

    def _title_sync(self) -> str:
        from selenium.common.exceptions import WebDriverException

        try:
            return self._driver.title or ""
        except WebDriverException as e:
            raise FetchError(
                f"Unable to read the title of {self._url}", url=self._url
            ) from e

    async def navigate(self, url: str, allow_scripts: bool) -> None:
        await asyncio.to_thread(self._navigate_sync, url, allow_scripts)
        logfire.debug("Page rendered", url=url, allow_scripts=allow_scripts)

    async def get_body_text(self) -> str:
        return await asyncio.to_thread(self._body_text_sync)

    async def get_title(self) -> str:
        if self._driver is None:
            return ""
        return await asyncio.to_thread(self._title_sync)

    async def dispose(self) -> None:
        if self._driver is None:
            return
        driver, self._driver = self._driver, None
        await asyncio.to_thread(driver.quit)
        logfire.info("Browser session closed")
