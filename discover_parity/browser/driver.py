"""
Chrome WebDriver setup.
"""

from contextlib import contextmanager
from typing import Iterator

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.remote.webdriver import WebDriver

from ..config import Config
from ..utils import setup_logger

WINDOW_SIZE = "1366,1024"


def build_options(config: Config) -> Options:
    """Chrome options for CI-friendly runs."""
    options = Options()
    if config.headless:
        options.add_argument("--headless=new")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-gpu")
    options.add_argument(f"--window-size={WINDOW_SIZE}")
    options.page_load_strategy = "eager"
    return options


def create_driver(config: Config) -> WebDriver:
    """Start Chrome; Selenium Manager resolves the chromedriver binary."""
    logger = setup_logger("browser", config.log_dir)
    driver = webdriver.Chrome(options=build_options(config))
    driver.set_page_load_timeout(config.page_load_timeout)
    logger.info(f"Chrome started (headless={config.headless})")
    return driver


@contextmanager
def managed_driver(config: Config) -> Iterator[WebDriver]:
    """Yield a driver and always quit it afterwards."""
    logger = setup_logger("browser", config.log_dir)
    driver = create_driver(config)
    try:
        yield driver
    finally:
        try:
            driver.quit()
        except WebDriverException as e:
            logger.warning(f"Driver quit failed: {e}")
