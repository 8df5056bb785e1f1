from django.apps.config import AppConfig


class CatalogConfig(AppConfig):
    name = "catalog"
    verbose_name = "Gutenberg catalog"
