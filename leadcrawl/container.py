"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from leadcrawl import config as env
from leadcrawl.configs import load_settings_file
from leadcrawl.domain.config import CrawlSettings
from leadcrawl.domain.visited_tracker import VisitedTracker
from leadcrawl.services.basic_lead_extractor import BasicLeadExtractor
from leadcrawl.services.crawl_walker import CrawlWalker
from leadcrawl.services.fetcher_factory import PageDriverFactory
from leadcrawl.services.gemini_classifier import DEFAULT_MODEL, build_content_classifier
from leadcrawl.services.governor import Governor
from leadcrawl.services.headless_browser_fetcher import PlaywrightBrowser, PlaywrightHeadlessOptions
from leadcrawl.services.html_text_extractor import HtmlContentExtractor, strategies_from_selectors
from leadcrawl.services.http_service import HttpService
from leadcrawl.services.lead_assembler import LeadAssembler
from leadcrawl.services.lead_cleaner import LeadCleaner
from leadcrawl.services.lead_crawler import LeadCrawler
from leadcrawl.services.lead_exporter import LeadExporter
from leadcrawl.services.link_classifier import LinkClassifier
from leadcrawl.services.page_driver import HttpPageSource
from leadcrawl.services.page_fetch_service import PageFetchService
from leadcrawl.services.search_result_filter import SearchResultFilter


# Environment variables used by the container (read via `leadcrawl.config` helpers).
#
# Crawl tunables (LEADCRAWL_DEFAULT_DEPTH, LEADCRAWL_FETCH_MODE, LEADCRAWL_MAX_CHILD_LINKS,
# LEADCRAWL_NAVIGATION_TIMEOUT_MS, LEADCRAWL_CHILD_DELAY_MS, LEADCRAWL_RETRY_ATTEMPTS,
# LEADCRAWL_RETRY_DELAY_MS, LEADCRAWL_MAX_CONCURRENT_PAGES, LEADCRAWL_SAME_DOMAIN_ONLY,
# LEADCRAWL_OUTPUT_DIR, USER_AGENT) are read by `CrawlSettings.from_env()`.
#
# GEMINI_API_KEY (str | optional)
#   Enables the Gemini content classifier. Without it, leads come from regex extraction
#   and search results are not filtered.
#
# LEADCRAWL_LLM_MODEL (str, default: "gemini-2.0-flash")
#
# LEADCRAWL_LLM_TIMEOUT (float seconds, default: 30)
#   Per-call timeout for classifier requests.
#
# HTTP_TIMEOUT (int seconds, default: 10)
#   Default timeout for the requests session; page navigations pass their own.
#
# LEADCRAWL_SETTINGS_FILE (str | optional)
#   YAML file applied on top of the environment-derived settings.
ENV = {
    "GEMINI_API_KEY": env.gemini_api_key(),
    "LEADCRAWL_LLM_MODEL": env.get_str_env("LEADCRAWL_LLM_MODEL", DEFAULT_MODEL),
    "LEADCRAWL_LLM_TIMEOUT": env.get_float_env("LEADCRAWL_LLM_TIMEOUT", 30.0),
    "HTTP_TIMEOUT": env.get_int_env("HTTP_TIMEOUT", 10),
    "LEADCRAWL_SETTINGS_FILE": env.settings_file(),
}


def _select_driver_source(factory: PageDriverFactory, settings: CrawlSettings):
    return factory.get(settings.fetch_mode)


class Container(containers.DeclarativeContainer):
    """Dependency injection container for LeadCrawl."""

    config = providers.Configuration(default=ENV)

    # Settings: environment first, then the optional YAML file. Callers may
    # override this provider with CLI-adjusted settings.
    settings = providers.Singleton(
        load_settings_file,
        config.LEADCRAWL_SETTINGS_FILE,
        base=providers.Singleton(CrawlSettings.from_env),
    )

    http_service = providers.Singleton(
        HttpService,
        user_agent=settings.provided.user_agent,
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_TIMEOUT.as_(int),
    )

    http_source = providers.Singleton(HttpPageSource, http_service=http_service)

    headless_source = providers.Singleton(
        PlaywrightBrowser,
        user_agent=settings.provided.user_agent,
        options=providers.Factory(PlaywrightHeadlessOptions, settle_ms=settings.provided.settle_ms),
    )

    driver_factory = providers.Singleton(
        PageDriverFactory,
        http_source=http_source,
        headless_source=headless_source,
    )

    driver_source = providers.Callable(_select_driver_source, driver_factory, settings)

    text_extractor = providers.Singleton(
        HtmlContentExtractor,
        removal_selectors=settings.provided.removal_selectors,
        strategies=providers.Callable(strategies_from_selectors, settings.provided.content_selectors),
    )

    link_classifier = providers.Singleton(LinkClassifier, settings=settings)

    fetch_governor = providers.Singleton(Governor.for_fetch, settings)
    classifier_governor = providers.Singleton(Governor.for_classifier, settings)

    page_fetch_service = providers.Singleton(
        PageFetchService,
        driver_source=driver_source,
        extractor=text_extractor,
        governor=fetch_governor,
        settings=settings,
    )

    crawl_walker = providers.Factory(
        CrawlWalker,
        fetch_service=page_fetch_service,
        classifier=link_classifier,
        visited=providers.Factory(VisitedTracker),
        settings=settings,
        governor=fetch_governor,
    )

    content_classifier = providers.Singleton(
        build_content_classifier,
        api_key=config.GEMINI_API_KEY,
        model_name=config.LEADCRAWL_LLM_MODEL.as_(str),
        timeout=config.LEADCRAWL_LLM_TIMEOUT.as_(float),
    )

    lead_cleaner = providers.Singleton(LeadCleaner)
    basic_lead_extractor = providers.Singleton(BasicLeadExtractor)

    lead_assembler = providers.Singleton(
        LeadAssembler,
        cleaner=lead_cleaner,
        fallback_extractor=basic_lead_extractor,
        classifier=content_classifier,
        governor=classifier_governor,
    )

    search_result_filter = providers.Singleton(
        SearchResultFilter,
        classifier=content_classifier,
        governor=classifier_governor,
    )

    lead_exporter = providers.Singleton(LeadExporter, output_dir=settings.provided.output_dir)

    lead_crawler = providers.Factory(
        LeadCrawler,
        walker=crawl_walker,
        assembler=lead_assembler,
        settings=settings,
        search_filter=search_result_filter,
    )
