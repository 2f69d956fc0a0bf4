"""SEO audit backend."""
