"""Analysis pipeline: fetch → indicators → recommendation → StockReport."""
