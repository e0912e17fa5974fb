"""Reader core: line extraction and sampling."""
