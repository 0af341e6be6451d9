import json
import logging
from typing import Dict, Optional

from flask import Flask, Response, jsonify, redirect, render_template_string, request, url_for

from api.admin import AdminPanel
from api.relay import MessageRelay
from api.services.feed import FeedState
from api.services.sms import SMSService
from api.services.storage import StorageService
from api.sms_handler import SMSHandler
from lib.config import Settings
from lib.countdown import compute_countdown
from lib.error_handler import ValidationError

logger = logging.getLogger(__name__)

ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']

LISTING_NOTE = 'Database disabled - only SMS notifications active'
STORE_NOT_CONFIGURED = 'Message store not configured.'
REPLY_FAILED_NOTICE = 'Reply could not be saved. Please try again.'


def cors_headers(methods: str) -> Dict[str, str]:
    return {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Methods': methods,
        'Access-Control-Allow-Headers': 'Content-Type, Authorization',
        'Access-Control-Max-Age': '86400',
    }


def json_response(body: dict, status: int, methods: str) -> Response:
    response = jsonify(body)
    response.status_code = status
    response.headers.update(cors_headers(methods))
    return response


ADMIN_TEMPLATE = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Lawyers - Ask Stuart - Admin Panel</title>
    <style>
      body { margin: 0; font-family: system-ui, -apple-system, "Segoe UI", Roboto, sans-serif; background: #f9fafb; }
      .wrap { max-width: 896px; margin: 0 auto; padding: 24px; }
      .card { background: white; border: 1px solid #e5e7eb; border-radius: 8px; }
      header { display: flex; justify-content: space-between; align-items: center; padding: 24px; border-bottom: 1px solid #e5e7eb; }
      .countdown { background: #eff6ff; border: 1px solid #bfdbfe; border-radius: 8px; padding: 12px 16px; text-align: center; }
      .live { color: #16a34a; font-weight: 600; }
      .message { padding: 24px; border-bottom: 1px solid #e5e7eb; }
      .badge { border-radius: 999px; padding: 2px 10px; font-size: 12px; }
      .replied { background: #dcfce7; color: #166534; }
      .pending { background: #fef9c3; color: #854d0e; }
      .question { background: #f9fafb; padding: 16px; border-radius: 8px; }
      .reply { background: #eff6ff; padding: 16px; border-radius: 8px; margin-top: 16px; }
      form { display: flex; gap: 12px; margin-top: 16px; }
      input[type=text] { flex: 1; padding: 8px 16px; border: 1px solid #d1d5db; border-radius: 8px; }
      button { background: #2563eb; color: white; border: 0; border-radius: 8px; padding: 8px 16px; }
      .empty { padding: 48px; text-align: center; color: #6b7280; }
    </style>
  </head>
  <body>
    <div class="wrap"><div class="card">
      <header>
        <div>
          <h1>Lawyers - Ask Stuart - Admin Panel</h1>
          <p>Specialist Family Law Property Valuer - {{ panel.summary }}</p>
          {% if notice %}<p>{{ notice }}</p>{% endif %}
        </div>
        <div class="countdown">
          {% if panel.countdown.is_live %}
            <div class="live">We're Live!</div>
          {% else %}
            <div>Service Launch</div>
            <strong>{{ panel.countdown.badge() }}</strong>
          {% endif %}
        </div>
      </header>
      {% for message in panel.messages %}
        <div class="message">
          <h3>{{ message.name }}</h3>
          <small>{{ message.timestamp }}</small>
          <span class="badge {{ 'replied' if message.read else 'pending' }}">{{ panel.status_label(message) }}</span>
          <div class="question">{{ message.question }}</div>
          {% if message.reply %}
            <div class="reply"><strong>Your Reply:</strong><p>{{ message.reply }}</p></div>
          {% else %}
            <form method="post" action="{{ url_for('reply_to_message', message_id=message.id) }}">
              <input type="text" name="reply" placeholder="Type your reply..." />
              <button type="submit">Reply</button>
            </form>
          {% endif %}
        </div>
      {% else %}
        <div class="empty">No messages yet. Waiting for questions...</div>
      {% endfor %}
    </div></div>
  </body>
</html>
"""


def create_app(settings: Settings, storage: Optional[StorageService], sms_service: SMSService) -> Flask:
    app = Flask(__name__)

    relay = MessageRelay(storage, sms_service, settings)
    sms_handler = SMSHandler(storage, settings.sms_recipient)

    @app.route('/api/messages-post', methods=ALL_METHODS)
    async def messages_post():
        """Relay a chat question: store it and page the admin by SMS"""
        methods = 'POST, OPTIONS'
        if request.method == 'OPTIONS':
            return Response('', status=200, headers=cors_headers(methods))
        if request.method != 'POST':
            return json_response({'error': 'Method not allowed'}, 405, methods)

        try:
            payload = json.loads(request.get_data(as_text=True))
            result = await relay.handle_submission(payload)
            return json_response(result.to_response(), 200, methods)
        except ValidationError as e:
            return json_response(e.payload, e.status_code, methods)
        except Exception as e:
            logger.error(f"Error processing message: {str(e)}", exc_info=True)
            return json_response({'error': 'Internal server error', 'details': str(e)}, 500, methods)

    @app.route('/api/messages-get', methods=ALL_METHODS)
    def messages_get():
        """Kept so older widgets polling this path don't get a 404"""
        methods = 'GET, OPTIONS'
        if request.method == 'OPTIONS':
            return Response('', status=200, headers=cors_headers(methods))
        if request.method != 'GET':
            return json_response({'error': 'Method not allowed'}, 405, methods)
        return json_response({'messages': [], 'note': LISTING_NOTE}, 200, methods)

    @app.route('/api/sms-webhook', methods=ALL_METHODS)
    async def sms_webhook():
        """Handle SMS replies from the admin's phone via Twilio"""
        twiml = await sms_handler.handle_incoming_message(request.method, request.form.to_dict())
        return Response(twiml, status=200, mimetype='text/xml')

    @app.route('/admin', methods=['GET'])
    async def admin_panel():
        panel = AdminPanel(storage)
        panel.countdown = compute_countdown(settings.launch_date)
        notice = request.args.get('notice')
        if storage is None:
            notice = STORE_NOT_CONFIGURED
        else:
            try:
                panel.apply(FeedState(messages=await storage.list_messages(), loading=False))
            except Exception as e:
                logger.error(f"Failed to load messages for admin panel: {str(e)}")
                notice = f"Database error: {str(e)}"
        return render_template_string(ADMIN_TEMPLATE, panel=panel, notice=notice)

    @app.route('/admin/messages/<message_id>/reply', methods=['POST'])
    async def reply_to_message(message_id):
        reply = request.form.get('reply', '')
        if storage is None:
            return redirect(url_for('admin_panel', notice=STORE_NOT_CONFIGURED))
        if reply.strip() and not await AdminPanel(storage).handle_reply(message_id, reply):
            return redirect(url_for('admin_panel', notice=REPLY_FAILED_NOTICE))
        return redirect(url_for('admin_panel'))

    @app.route('/status', methods=['GET'])
    def status():
        """Check which integrations are configured"""
        return {
            'status': 'healthy',
            'storeConfigured': settings.store_configured,
            'twilioConfigured': settings.twilio_configured,
            'smsRecipientConfigured': bool(settings.sms_recipient)
        }, 200

    return app
