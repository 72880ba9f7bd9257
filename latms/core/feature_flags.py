import os


def _as_bool(val: str | None, default: bool = True) -> bool:
    if val is None:
        return default
    v = val.strip().lower()
    return v in {"1", "true", "yes", "on"}


class Features:
    notifications: bool
    csv_import: bool
    mail_send: bool

    def __init__(self) -> None:
        self.notifications = _as_bool(os.getenv("FEATURE_NOTIFICATIONS"), True)
        self.csv_import = _as_bool(os.getenv("FEATURE_CSV_IMPORT"), True)
        # SMTP delivery of mail-to notifications is opt-in
        self.mail_send = _as_bool(os.getenv("FEATURE_MAIL_SEND"), False)


features = Features()
