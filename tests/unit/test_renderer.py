"""Tests for the Chrome page renderer."""

from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from selenium.common.exceptions import (
    NoSuchElementException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.common.by import By

from text_search.exceptions import FetchError
from text_search.models.page_models import PageRecord
from text_search.services.content_extractor import ContentExtractor
from text_search.services.renderer import ChromePageRenderer


@pytest.fixture
def mock_driver():
    driver = MagicMock()
    driver.title = "Llengua catalana"
    driver.find_element.return_value.text = "Lectura comprensiva"
    return driver


@pytest.fixture
def renderer(mock_driver, mock_logfire):
    with patch.object(ChromePageRenderer, "_start_driver", return_value=mock_driver):
        yield ChromePageRenderer(timeout=5)


class TestChromePageRenderer:
    """Test ChromePageRenderer over a mocked driver."""

    @pytest.mark.asyncio
    async def test_navigate_toggles_scripts(self, renderer, mock_driver):
        """Script execution is disabled unless the page allows it."""
        await renderer.navigate("https://edu365.cat/a", allow_scripts=False)
        await renderer.navigate("https://edu365.cat/b", allow_scripts=True)

        cdp_calls = mock_driver.execute_cdp_cmd.call_args_list
        assert cdp_calls[0][0] == ("Emulation.setScriptExecutionDisabled", {"value": True})
        assert cdp_calls[1][0] == ("Emulation.setScriptExecutionDisabled", {"value": False})
        assert [c[0][0] for c in mock_driver.get.call_args_list] == [
            "https://edu365.cat/a",
            "https://edu365.cat/b",
        ]

    @pytest.mark.asyncio
    async def test_body_and_title(self, renderer, mock_driver):
        await renderer.navigate("https://edu365.cat/a", allow_scripts=True)

        assert await renderer.get_body_text() == "Lectura comprensiva"
        assert await renderer.get_title() == "Llengua catalana"
        mock_driver.find_element.assert_called_with(By.TAG_NAME, "body")

    @pytest.mark.asyncio
    async def test_navigation_error(self, renderer, mock_driver):
        """Driver errors surface as FetchError with the URL."""
        mock_driver.get.side_effect = TimeoutException("timed out")

        with pytest.raises(FetchError, match="Unable to render") as exc_info:
            await renderer.navigate("https://edu365.cat/slow", allow_scripts=False)
        assert exc_info.value.url == "https://edu365.cat/slow"

    @pytest.mark.asyncio
    async def test_missing_body(self, renderer, mock_driver):
        mock_driver.find_element.side_effect = NoSuchElementException("no body")
        await renderer.navigate("https://edu365.cat/a", allow_scripts=False)

        with pytest.raises(FetchError, match="Unable to read the body"):
            await renderer.get_body_text()

    @pytest.mark.asyncio
    async def test_body_before_navigation(self, renderer):
        with pytest.raises(FetchError, match="No page has been loaded"):
            await renderer.get_body_text()

    @pytest.mark.asyncio
    async def test_dispose_quits_once(self, renderer, mock_driver):
        await renderer.navigate("https://edu365.cat/a", allow_scripts=False)

        await renderer.dispose()
        await renderer.dispose()

        mock_driver.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_title_error(self, mock_logfire):
        """A dead session while reading the title surfaces as FetchError."""
        driver = MagicMock()
        type(driver).title = PropertyMock(side_effect=WebDriverException("dead"))
        with patch.object(ChromePageRenderer, "_start_driver", return_value=driver):
            renderer = ChromePageRenderer(timeout=5)
            await renderer.navigate("https://edu365.cat/a", allow_scripts=False)

            with pytest.raises(FetchError, match="Unable to read the title") as exc_info:
                await renderer.get_title()
        assert exc_info.value.url == "https://edu365.cat/a"


class TestChromeRendererExtraction:
    """ContentExtractor over ChromePageRenderer with a failing title read."""

    @pytest.mark.asyncio
    async def test_title_failure_does_not_stop_batch(self, mock_logfire):
        """The record whose title cannot be read fails, the next one is extracted."""
        driver = MagicMock()
        type(driver).title = PropertyMock(
            side_effect=[WebDriverException("dead"), "Llengua catalana"]
        )
        driver.find_element.return_value.text = "Lectura comprensiva"
        first = PageRecord(path="/a/", changed=True, pending_etag='"a2"', etag='"a1"')
        second = PageRecord(path="/b/", changed=True, pending_etag='"b2"')

        with patch.object(ChromePageRenderer, "_start_driver", return_value=driver):
            renderer = ChromePageRenderer(timeout=5)
            extracted, failures = await ContentExtractor(renderer, frozenset()).extract_all(
                "https://edu365.cat", [first, second]
            )

        assert extracted == [second]
        assert second.normalized_text == "catalana comprensiva lectura llengua"
        assert [(f.path, f.stage) for f in failures] == [("/a/", "extract")]
        assert first.etag == '"a1"'
        assert first.changed is True
