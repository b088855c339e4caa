#!/usr/bin/env python3
"""
JSON interface for the multi-signature wallet
"""

import os

from flask import Flask, jsonify, request

from multisig.config import load_config
from multisig.errors import CustodyError, ErrorKind
from multisig.logging_config import configure_logging, get_logger
from multisig.wallet import MultiSigWallet

logger = get_logger(__name__)

STATUS_CODES = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.NOT_AUTHORIZED: 403,
    ErrorKind.UNKNOWN_TRANSACTION: 404,
    ErrorKind.ALREADY_EXECUTED: 409,
    ErrorKind.DUPLICATE_APPROVAL: 409,
    ErrorKind.INSUFFICIENT_APPROVALS: 409,
    ErrorKind.TRANSFER_FAILED: 422,
}


def create_app(wallet: MultiSigWallet) -> Flask:
    """Build a Flask app serving ``wallet``"""
    app = Flask(__name__)
    app.config['WALLET'] = wallet

    @app.errorhandler(CustodyError)
    def handle_custody_error(error):
        return jsonify({'success': False, **error.to_dict()}), STATUS_CODES[error.kind]

    @app.errorhandler(ValueError)
    def handle_value_error(error):
        return jsonify({'success': False, 'error': 'invalid_request', 'message': str(error)}), 400

    @app.route('/api/wallet')
    def get_wallet():
        return jsonify(wallet.to_dict())

    @app.route('/api/signers')
    def get_signers():
        return jsonify({
            'signers': list(wallet.registry.signers),
            'count': wallet.signer_count()
        })

    @app.route('/api/signers/<int:index>')
    def get_signer(index):
        try:
            signer = wallet.signers(index)
        except IndexError:
            return jsonify({'success': False, 'error': 'unknown_signer'}), 404
        return jsonify({'index': index, 'signer': signer})

    @app.route('/api/threshold')
    def get_threshold():
        return jsonify({'threshold': wallet.threshold()})

    @app.route('/api/balance')
    def get_balance():
        return jsonify({'balance': wallet.balance()})

    @app.route('/api/deposit', methods=['POST'])
    def deposit():
        data = _json_body()
        balance = wallet.receive(_field(data, 'sender'), _field(data, 'amount'))
        return jsonify({'success': True, 'balance': balance})

    @app.route('/api/transactions')
    def list_transactions():
        count = wallet.transaction_count()
        return jsonify({
            'count': count,
            'transactions': [wallet.get_transaction(i).to_dict() for i in range(count)]
        })

    @app.route('/api/transactions/<int:tx_id>')
    def get_transaction(tx_id):
        return jsonify(wallet.get_transaction(tx_id).to_dict())

    @app.route('/api/transactions/<int:tx_id>/approvals/<signer>')
    def get_approval(tx_id, signer):
        return jsonify({
            'id': tx_id,
            'signer': signer,
            'approved': wallet.approvals(tx_id, signer)
        })

    @app.route('/api/transactions', methods=['POST'])
    def submit_transaction():
        data = _json_body()
        tx_id = wallet.submit_transaction(
            _field(data, 'caller'),
            _field(data, 'destination'),
            _field(data, 'amount'),
            data.get('payload', '0x')
        )
        return jsonify({'success': True, 'id': tx_id}), 201

    @app.route('/api/transactions/<int:tx_id>/approve', methods=['POST'])
    def approve_transaction(tx_id):
        data = _json_body()
        wallet.approve_transaction(_field(data, 'caller'), tx_id)
        return jsonify({
            'success': True,
            'id': tx_id,
            'approvals': wallet.ledger.approval_count(tx_id)
        })

    @app.route('/api/transactions/<int:tx_id>/execute', methods=['POST'])
    def execute_transaction(tx_id):
        data = _json_body()
        wallet.execute_transaction(data.get('caller', 'anonymous'), tx_id)
        return jsonify({'success': True, 'id': tx_id, 'balance': wallet.balance()})

    return app


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _field(data: dict, name: str):
    if name not in data:
        raise ValueError(f"Missing field: {name}")
    return data[name]


if __name__ == '__main__':
    config = load_config(os.environ.get('MULTISIG_CONFIG'))
    configure_logging(config.log_level, format_json=config.log_json)
    logger.info("starting_web_interface", threshold=config.threshold, signers=len(config.signers))
    app = create_app(MultiSigWallet.from_config(config))
    app.run(debug=False, port=int(os.environ.get('PORT', 5000)))
