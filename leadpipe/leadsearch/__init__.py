from .export import export_lead_search_csv, leads_to_csv
from .progress import ProgressTracker
from .service import LeadSearchService

__all__ = ["LeadSearchService", "ProgressTracker", "export_lead_search_csv", "leads_to_csv"]
