import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from logging_setup import get_logger
from settings import FROM_EMAIL, FROM_NAME, SMTP_HOST, SMTP_PASSWORD, SMTP_PORT, SMTP_USERNAME

logger = get_logger(__name__)


class EmailError(Exception):
    pass


def send_email(to: str, subject: str, message: str) -> None:
    if not SMTP_HOST:
        raise EmailError("SMTP is not configured")

    msg = MIMEMultipart()
    msg["From"] = f"{FROM_NAME} <{FROM_EMAIL}>"
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(message, "plain"))

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT) as server:
            server.starttls()
            if SMTP_USERNAME and SMTP_PASSWORD:
                server.login(SMTP_USERNAME, SMTP_PASSWORD)
            server.sendmail(FROM_EMAIL, [to], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        raise EmailError(str(e)) from e
    logger.info("email_sent", to=to, subject=subject)


def get_mailer():
    return send_email
