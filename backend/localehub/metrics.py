from prometheus_client import Counter, Histogram

PROVIDER_ATTEMPTS = Counter(
    "localehub_ai_provider_attempts_total",
    "AI provider calls by outcome",
    ["provider", "outcome"],
)
PROVIDER_RETRIES = Counter(
    "localehub_ai_provider_retries_total",
    "AI provider calls retried after a rate-limit signal",
    ["provider"],
)
LOCALE_OUTCOMES = Counter(
    "localehub_translation_locale_outcomes_total",
    "Per-locale results of AI translation runs",
    ["outcome"],
)
RUN_DURATION = Histogram(
    "localehub_translation_run_duration_seconds",
    "Duration of AI translation runs",
    ["mode"],
)

JOB_DURATION = Histogram(
    "localehub_job_duration_seconds",
    "Duration of scheduled jobs",
    ["job_name"],
)
JOB_SUCCESS = Counter(
    "localehub_job_success_total",
    "Scheduled job successes",
    ["job_name"],
)
JOB_FAILURE = Counter(
    "localehub_job_failure_total",
    "Scheduled job failures after all retries",
    ["job_name"],
)
