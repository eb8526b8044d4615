"""RDF statement handling for repository resources."""
