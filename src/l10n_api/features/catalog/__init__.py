"""Services, keys, translations and release bundles."""
