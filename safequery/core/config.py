"""
Settings for safequery, read from ``SAFEQUERY_*`` environment variables or a ``.env`` file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from safequery.models import DataSource, ProductTypeEnum


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SAFEQUERY_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    DB_PRODUCT_TYPE: ProductTypeEnum = ProductTypeEnum.SQLITE
    DB_HOST: str | None = None
    DB_PORT: int | None = None
    DB_DATABASE: str = ":memory:"
    DB_USERNAME: str | None = None
    DB_PASSWORD: str = ""

    # Seconds; passed to the driver's connect().
    DB_CONNECT_TIMEOUT: int = 10

    # When True no DELETE ever passes the guard; rows are retired through a status flag.
    SOFT_DELETE_ENFORCED: bool = True

    def default_datasource(self, database: str | None = None) -> DataSource:
        """DataSource from settings; ``database`` selects another database on the same server."""
        return DataSource(
            product_type=self.DB_PRODUCT_TYPE,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=database or self.DB_DATABASE,
            username=self.DB_USERNAME,
            password=self.DB_PASSWORD,
        )


settings = Settings()
