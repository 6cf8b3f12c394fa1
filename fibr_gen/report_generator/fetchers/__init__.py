# fibr_gen/report_generator/fetchers/__init__.py
from .base import DataFetcher
from .memory_fetcher import InMemoryDataFetcher
from .csv_fetcher import CsvDataFetcher
from .sql_fetcher import SqlDataFetcher

__all__ = [
    'DataFetcher',
    'InMemoryDataFetcher',
    'CsvDataFetcher',
    'SqlDataFetcher',
]
