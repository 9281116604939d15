"""Grouped, pivot-aware table models for dashboard query results.

Submodules:
  patterns       -- delimiter candidates, sentinels and display constants
  schema         -- Pydantic models for fields, cells, pivots and the table model
  cells          -- raw result cell normalisation and value lookup
  pivot_keys     -- heuristic splitting of delimiter-joined pivot keys
  hierarchy      -- pivot level analysis and consecutive-run grouping
  sections       -- first-occurrence ordered section partitioning
  number_format  -- spreadsheet-style number format patterns
  config         -- resolution of host options into a RenderConfig
  assembler      -- header, body and total assembly into a TableModel
  html_table     -- plain HTML serialisation of a TableModel
  render         -- render() entry point and command-line interface
"""
