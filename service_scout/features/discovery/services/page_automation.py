"""
Page automation layer.

The discovery engine talks to the browser only through the PageAutomation
contract below. SeleniumPageAutomation implements it with a single Chrome
WebDriver; a "context" is a browser window handle.
"""
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol, Set

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from service_scout.features.discovery.exceptions import ActivationError, NavigationError
from service_scout.features.discovery.schemas.discovery import LinkTarget, StepResult
from service_scout.platform.config import settings
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)

_LINK_TARGETS_SCRIPT = """
return Array.from(document.querySelectorAll('a[href]')).map(
    a => [a.getAttribute('href') || '', a.href || '']
);
"""


@dataclass(frozen=True)
class RenderedPage:
    """A loaded page: the URL that was requested, the window showing it and where it landed."""
    url: str
    context: str
    final_url: str = ""


class PageAutomation(Protocol):
    def load(self, url: str) -> RenderedPage: ...

    def query(self, page: RenderedPage, selector: str) -> List[WebElement]: ...

    def activate(self, element: WebElement, timeout: float) -> StepResult: ...

    def wait_for_new_context(self, timeout: float) -> Optional[str]: ...

    def wait_for_idle(self, context: str, timeout: float) -> bool: ...

    def current_url(self, context: str) -> str: ...

    def close(self, context: str) -> StepResult: ...

    def link_targets(self, page: RenderedPage) -> List[LinkTarget]: ...

    def element_text(self, element: WebElement) -> str: ...

    def element_attribute(self, element: WebElement, name: str) -> Optional[str]: ...

    def quit(self) -> None: ...


class SeleniumPageAutomation:
    """
    Chrome-backed PageAutomation.

    One driver serves the whole run. Windows opened by clicks are tracked by
    diffing window handles against the snapshot taken just before the click.
    """

    def __init__(
        self,
        driver: Optional[webdriver.Chrome] = None,
        max_retries: int = settings.MAX_REQUEST_RETRIES,
        navigation_timeout: int = settings.NAVIGATION_TIMEOUT_SECONDS,
        idle_timeout: float = settings.IDLE_TIMEOUT_SECONDS,
        retry_delay: float = 1.0,
    ):
        self.driver = driver or self.build_driver()
        self.max_retries = max_retries
        self.navigation_timeout = navigation_timeout
        self.idle_timeout = idle_timeout
        self.retry_delay = retry_delay
        self._main_context: Optional[str] = None
        self._known_contexts: Set[str] = set()

        self.driver.set_page_load_timeout(navigation_timeout)

    @staticmethod
    def build_driver(headless: bool = settings.HEADLESS) -> webdriver.Chrome:
        chrome_options = Options()
        if headless:
            chrome_options.add_argument('--headless=new')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')
        chrome_options.add_argument(f'--window-size={settings.WINDOW_WIDTH},{settings.WINDOW_HEIGHT}')

        if settings.CHROMEDRIVER_PATH:
            driver_service = Service(executable_path=settings.CHROMEDRIVER_PATH)
            return webdriver.Chrome(service=driver_service, options=chrome_options)
        return webdriver.Chrome(options=chrome_options)

    def __enter__(self) -> "SeleniumPageAutomation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.quit()

    def load(self, url: str) -> RenderedPage:
        """
        Navigate the main window to url, retrying up to max_retries times.

        Raises:
            NavigationError: when every attempt failed
        """
        self._close_stray_contexts()
        attempts = self.max_retries + 1
        last_error = ""

        for attempt in range(1, attempts + 1):
            try:
                self.driver.get(url)
                self._main_context = self.driver.current_window_handle
                self.wait_for_idle(self._main_context, self.idle_timeout)
                return RenderedPage(url=url, context=self._main_context, final_url=self.driver.current_url)
            except TimeoutException as e:
                last_error = f"Timeout loading page: {e.msg or e}"
            except WebDriverException as e:
                last_error = f"WebDriver error: {e.msg or e}"

            logger.warning(f"Load attempt {attempt}/{attempts} failed for {url}: {last_error}")
            if attempt < attempts:
                time.sleep(self.retry_delay * attempt)

        raise NavigationError(url, attempts, last_error)

    def query(self, page: RenderedPage, selector: str) -> List[WebElement]:
        try:
            self.driver.switch_to.window(page.context)
            return self.driver.find_elements(By.CSS_SELECTOR, selector)
        except WebDriverException as e:
            logger.warning(f"Query {selector!r} failed on {page.url}: {e.msg or e}")
            return []

    def activate(self, element: WebElement, timeout: float) -> StepResult:
        """Click element once it is clickable; the window set is snapshotted first."""
        try:
            self.click(element, timeout)
            return StepResult.success()
        except ActivationError as e:
            return StepResult.failure(str(e))

    def click(self, element: WebElement, timeout: float) -> None:
        """
        Raises:
            ActivationError: if the element is detached, hidden or never clickable
        """
        try:
            self._known_contexts = set(self.driver.window_handles)
            WebDriverWait(self.driver, timeout).until(EC.element_to_be_clickable(element))
            element.click()
        except TimeoutException as e:
            raise ActivationError(f"element not clickable within {timeout}s") from e
        except WebDriverException as e:
            raise ActivationError(e.msg or e.__class__.__name__) from e

    def wait_for_new_context(self, timeout: float) -> Optional[str]:
        """Handle of a window opened since the last activate(), or None on timeout."""
        known = self._known_contexts

        def _new_handles(driver):
            return [handle for handle in driver.window_handles if handle not in known]

        try:
            new_handles = WebDriverWait(self.driver, timeout).until(_new_handles)
        except TimeoutException:
            return None
        except WebDriverException as e:
            logger.warning(f"Could not inspect windows: {e.msg or e}")
            return None

        handle = new_handles[0]
        self._known_contexts = known | {handle}
        return handle

    def wait_for_idle(self, context: str, timeout: float) -> bool:
        """Wait until document.readyState is complete. False on timeout."""
        try:
            self.driver.switch_to.window(context)
            WebDriverWait(self.driver, timeout).until(
                lambda driver: driver.execute_script("return document.readyState") == "complete"
            )
            return True
        except TimeoutException:
            return False
        except WebDriverException as e:
            logger.warning(f"Idle wait failed: {e.msg or e}")
            return False

    def current_url(self, context: str) -> str:
        try:
            self.driver.switch_to.window(context)
            return self.driver.current_url
        except WebDriverException as e:
            logger.warning(f"Could not read URL of window {context}: {e.msg or e}")
            return ""

    def close(self, context: str) -> StepResult:
        """Close a secondary window and return focus to the main one."""
        try:
            self.driver.switch_to.window(context)
            self.driver.close()
            return StepResult.success()
        except WebDriverException as e:
            return StepResult.failure(e.msg or e.__class__.__name__)
        finally:
            self._known_contexts.discard(context)
            if self._main_context:
                try:
                    self.driver.switch_to.window(self._main_context)
                except WebDriverException as e:
                    logger.warning(f"Could not refocus main window: {e.msg or e}")

    def link_targets(self, page: RenderedPage) -> List[LinkTarget]:
        try:
            self.driver.switch_to.window(page.context)
            pairs = self.driver.execute_script(_LINK_TARGETS_SCRIPT) or []
        except WebDriverException as e:
            logger.warning(f"Link extraction failed on {page.url}: {e.msg or e}")
            return []
        return [LinkTarget(raw=raw or "", href=href or "") for raw, href in pairs]

    def element_text(self, element: WebElement) -> str:
        try:
            return (element.text or "").strip()
        except WebDriverException:
            return ""

    def element_attribute(self, element: WebElement, name: str) -> Optional[str]:
        try:
            return element.get_attribute(name)
        except WebDriverException:
            return None

    def quit(self) -> None:
        try:
            self.driver.quit()
        except WebDriverException as e:
            logger.warning(f"Error shutting down browser: {e.msg or e}")

    def _close_stray_contexts(self) -> None:
        """Close any window other than the main one left over from a previous page."""
        try:
            handles = list(self.driver.window_handles)
        except WebDriverException:
            return
        for handle in handles:
            if self._main_context and handle != self._main_context:
                self.close(handle)
