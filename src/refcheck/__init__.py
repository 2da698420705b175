"""refcheck - Verify free-text bibliographic references.

Each reference line (``Author, Title[, DOI or ISBN]``) is checked against
Crossref and Google Books and classified as verified, potential match,
error, or unverified (potentially fake).

Example usage:
    from refcheck import BatchRunner, CrossrefClient, GoogleBooksClient, HttpClient, ReferenceVerifier

    with HttpClient() as http:
        verifier = ReferenceVerifier.from_clients(CrossrefClient(http), GoogleBooksClient(http))
        results = BatchRunner(verifier).run(["Smith, A Great Title, 10.1000/xyz123"])
"""

from refcheck._version import __version__
from refcheck.batch import (
    BatchRunner,
    JsonlSink,
    LoggingSink,
    MultiSink,
    ResultSink,
    run_batch,
)
from refcheck.clients import (
    CrossrefClient,
    GoogleBooksClient,
    crossref_item_to_record,
    google_volume_to_record,
)
from refcheck.config import VerifierConfig, load_config
from refcheck.history import HistoryStore, InMemoryHistoryStore, JsonHistoryStore
from refcheck.models import (
    BookRecord,
    CheckResult,
    IdentifierKind,
    ParsedReference,
    Verdict,
    VerdictStatus,
    WorkRecord,
)
from refcheck.orchestrator import ReferenceVerifier
from refcheck.parser import classify_identifier, clean_reference, parse_reference, prepare_references
from refcheck.resolvers import (
    CrossrefTitleResolver,
    DoiResolver,
    GoogleBooksTitleResolver,
    IsbnResolver,
    TitleResolver,
    TitleResolverChain,
)
from refcheck.utils import (
    HttpClient,
    RateLimiter,
    RateLimiterRegistry,
    TransportError,
    author_surname,
    doi_normalize,
    normalize_isbn,
)

__all__ = [
    # Version
    "__version__",
    # Data classes
    "BookRecord",
    "CheckResult",
    "IdentifierKind",
    "ParsedReference",
    "Verdict",
    "VerdictStatus",
    "WorkRecord",
    # Parsing
    "classify_identifier",
    "clean_reference",
    "parse_reference",
    "prepare_references",
    # API clients
    "CrossrefClient",
    "GoogleBooksClient",
    "crossref_item_to_record",
    "google_volume_to_record",
    # Resolvers
    "CrossrefTitleResolver",
    "DoiResolver",
    "GoogleBooksTitleResolver",
    "IsbnResolver",
    "TitleResolver",
    "TitleResolverChain",
    "ReferenceVerifier",
    # Batch processing
    "BatchRunner",
    "JsonlSink",
    "LoggingSink",
    "MultiSink",
    "ResultSink",
    "run_batch",
    # History & config
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonHistoryStore",
    "VerifierConfig",
    "load_config",
    # HTTP infrastructure
    "HttpClient",
    "RateLimiter",
    "RateLimiterRegistry",
    "TransportError",
    # Utilities
    "author_surname",
    "doi_normalize",
    "normalize_isbn",
]
