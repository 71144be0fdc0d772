"""Infrastructure layer — database, migrations, blob storage, and the ContentStore repository."""
