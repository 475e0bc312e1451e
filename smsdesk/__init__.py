"""smsdesk: receive-sms-online inbox scraper and message store."""
