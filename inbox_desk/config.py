# inbox_desk/config.py

TRIAGE_CONFIG = {
    "mail_source": {
        "unread_window_hours": 24,
        "unread_page_size": 50,
        "sent_window_days": 7,
        "sent_page_size": 100,
        "user_id": "me",
        "scopes": [
            "https://www.googleapis.com/auth/gmail.modify",
            "https://www.googleapis.com/auth/gmail.send",
        ],
        "token_uri": "https://oauth2.googleapis.com/token",
    },
    "classifier": {
        "model": {
            "name": "llama-3.3-70b-versatile",
            "temperature": 0.2,
            "max_completion_tokens": 8192,
            "retry_count": 2,
        },
        # Per-message body cap before the batch is sent to the model
        "body_snippet_chars": 2000,
    },
    "cache": {
        "ttl_seconds": 60 * 30,
        "emails_key": "gmail_fetched_emails_v1",
        "verdicts_key": "gmail_analysis_results_v1",
    },
    "report": {
        "preview_chars": 300,
        "triage_body_chars": 1000,
    },
}

COMPOSER_CONFIG = {
    "model": {
        "name": "llama-3.3-70b-versatile",
        "temperature": 0.7,
        "max_completion_tokens": 4096,
    },
    "default_from_name": "François",
    "default_gender": "male",
    "default_language": "english",
}
