# Project material import: ingest → clean → match → report
