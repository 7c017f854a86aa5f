from memory_graph.ingestion.contradiction import ContradictionScanner, Supersession
from memory_graph.ingestion.pipeline import IngestionPipeline

__all__ = ["IngestionPipeline", "ContradictionScanner", "Supersession"]
