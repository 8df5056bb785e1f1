"""
Design
======

The catalog app keeps a local copy of the Project Gutenberg catalog: one
``Book`` row per published work, keyed by the Gutenberg ebook number.

General goals:

* The database row for a work is the only durable state. Every run replaces
  all mapped fields of every work it sees; nothing is merged.
* A run is strictly sequential and has no checkpoint. If it fails it is simply
  run again.

A run works like this:

1. The catalog archive (``rdf-files.tar.bz2``) is downloaded into a temporary
   working directory and extracted there (``catalog.acquisition``).
2. The extracted tree holds one directory per work, ``cache/epub/{id}/``,
   containing the RDF/XML record ``pg{id}.rdf``. Directories whose names are
   not numbers are housekeeping and are skipped (``catalog.sync``).
3. Each record is parsed into a ``WorkRecord`` (``catalog.rdf``), projected
   into the model's field names (``catalog.mapper``) and upserted.
4. The working directory is removed whether the run succeeded or failed
   (``sync_gutenberg_catalog`` management command).
"""
