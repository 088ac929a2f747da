import smtplib
import requests
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from config import NotificationSettings

logger = logging.getLogger(__name__)

NOTIFIED_STATUSES = ("successful", "failed")


class Notifications:
    def __init__(self, settings: NotificationSettings):
        self.slack_webhook_url = settings.slack_webhook_url
        self.email = settings.email

    def send_slack_message(self, message: str):
        """
        Send a message to Slack via a webhook URL.
        """
        if not self.slack_webhook_url:
            logger.debug("Slack webhook URL not configured. Skipping Slack notification.")
            return
        try:
            response = requests.post(self.slack_webhook_url, json={"text": message}, timeout=10)
            if response.status_code != 200:
                logger.error(f"Failed to send Slack message. Code: {response.status_code}, Resp: {response.text}")
            else:
                logger.info("Slack message sent successfully.")
        except requests.RequestException as e:
            logger.error(f"Exception while sending Slack message: {e}")

    def send_email(self, subject: str, plain_body: str, html_body: str = None):
        if self.email is None:
            logger.debug("Email notifications not configured. Skipping Email notification.")
            return

        email = self.email
        if not all([email.smtp_server, email.username, email.password, email.recipients]):
            logger.error("Email configuration is incomplete. Check config.yaml.")
            return

        msg = MIMEMultipart('alternative')
        msg['From'] = email.sender_email or email.username
        msg['To'] = ", ".join(email.recipients)
        msg['Subject'] = subject
        msg.attach(MIMEText(plain_body, 'plain'))
        if html_body:
            msg.attach(MIMEText(html_body, 'html'))

        try:
            if email.smtp_port == 465:
                server = smtplib.SMTP_SSL(email.smtp_server, email.smtp_port, timeout=10)
            else:
                server = smtplib.SMTP(email.smtp_server, email.smtp_port, timeout=10)

            # Leaving the block closes the connection, also when login or sending fails.
            with server:
                if email.smtp_port != 465:
                    server.ehlo()
                    if email.use_tls:
                        server.starttls()
                        server.ehlo()

                server.login(email.username, email.password)
                server.send_message(msg)
            logger.info(f"Email sent successfully to {email.recipients} with subject '{subject}'.")
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP Authentication Error: {e}")
        except smtplib.SMTPException as e:
            logger.error(f"SMTP Error: {e}")
        except OSError as e:
            logger.error(f"Could not reach SMTP server {email.smtp_server}: {e}")

    def notify_deploy_event(self, repo_full_name: str, status: str, details: str = ""):
        """
        Notify about a deployment (Slack + Email); only successful and failed deployments are reported.
        """
        if status not in NOTIFIED_STATUSES:
            return

        message = (
            f"🚀 Deploy Event\n"
            f"Repository: {repo_full_name}\n"
            f"Status: {status.capitalize()}\n"
            f"Details: {details}"
        )
        self.send_slack_message(message)

        subject = f"Deploy Event: {status.capitalize()} on {repo_full_name}"
        html_message = f"""
        <html>
          <body>
            <h2>Deploy Event - {status.capitalize()}</h2>
            <table border="1" style="border-collapse: collapse;">
              <tr><th>Repository</th><td>{escape(repo_full_name)}</td></tr>
              <tr><th>Status</th><td>{status.capitalize()}</td></tr>
              <tr><th>Details</th><td><pre>{escape(details or "")}</pre></td></tr>
            </table>
          </body>
        </html>
        """
        self.send_email(subject, message, html_message)
