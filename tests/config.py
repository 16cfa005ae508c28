"""Test-specific configuration for Kermesse Tickets tests"""

# Test configuration dictionary
test_config = {
    "admin_password": "door-staff-secret",
    "app_base_url": "http://localhost:3000",
    "event_name": "Test Kermesse",
    "stripe_secret_key": "sk_test_dummy",
    "stripe_webhook_secret": "whsec_test_dummy",
    "mailgun_api_key": "key-test",
    "mailgun_domain": "mg.example.com",
    "sender_email": "tickets@example.com",
}
