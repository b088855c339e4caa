import unittest
from multisig.wallet import MultiSigWallet
from multisig.events import Deposited, Executed, Submitted
from multisig.identity import SignerKey, generate_signers
from web_interface.app import create_app


class TestWallet(unittest.TestCase):

    def setUp(self):
        """Deploy a 2-of-3 wallet and send it 10 units"""
        keys = generate_signers(3)
        self.signer1, self.signer2, self.signer3 = [k.address() for k in keys]
        self.other = SignerKey().address()

        self.wallet = MultiSigWallet([self.signer1, self.signer2, self.signer3], 2)
        self.wallet.receive(self.signer1, 10)

    def test_deployment(self):
        """Signers, threshold and received funds"""
        self.assertEqual(self.wallet.signers(0), self.signer1)
        self.assertEqual(self.wallet.signers(1), self.signer2)
        self.assertEqual(self.wallet.signers(2), self.signer3)
        self.assertEqual(self.wallet.threshold(), 2)
        self.assertEqual(self.wallet.balance(), 10)

    def test_transaction_flow(self):
        tx_id = self.wallet.submit_transaction(self.signer1, self.other, 1, "0x")
        self.assertEqual(self.wallet.transaction_count(), 1)

        self.wallet.approve_transaction(self.signer1, tx_id)
        self.wallet.approve_transaction(self.signer2, tx_id)
        self.assertTrue(self.wallet.approvals(tx_id, self.signer2))

        self.wallet.execute_transaction(self.signer3, tx_id)
        self.assertEqual(self.wallet.pool.balance_of(self.other), 1)
        self.assertEqual(self.wallet.pending_transactions(), [])

        self.assertEqual(self.wallet.events.history, [
            Deposited(self.signer1, 10, 10),
            Submitted(tx_id, self.other, 1),
            Executed(tx_id),
        ])

    def test_rejects_negative_deposit(self):
        with self.assertRaises(ValueError):
            self.wallet.receive(self.signer1, -5)
        self.assertEqual(self.wallet.balance(), 10)


class TestIdentity(unittest.TestCase):

    def test_address_format(self):
        key = SignerKey()
        address = key.address()
        self.assertTrue(address.startswith("0x"))
        self.assertEqual(len(address), 42)

        public_hex = key.public_key_hex()
        self.assertEqual(len(public_hex), 66)
        self.assertIn(public_hex[:2], ("02", "03"))

    def test_address_deterministic(self):
        key = SignerKey()
        restored = SignerKey.from_hex(key.private_key_hex())
        self.assertEqual(restored.address(), key.address())

    def test_generated_signers_distinct(self):
        addresses = {k.address() for k in generate_signers(5)}
        self.assertEqual(len(addresses), 5)

        with self.assertRaises(ValueError):
            generate_signers(0)


class TestWebInterface(unittest.TestCase):

    def setUp(self):
        self.signers = [k.address() for k in generate_signers(3)]
        self.other = SignerKey().address()
        self.wallet = MultiSigWallet(self.signers, 2)
        self.client = create_app(self.wallet).test_client()
        self.client.post('/api/deposit', json={'sender': self.signers[0], 'amount': 10})

    def _submit(self, caller, amount=1):
        return self.client.post('/api/transactions', json={
            'caller': caller,
            'destination': self.other,
            'amount': amount,
            'payload': '0x'
        })

    def test_read_only_queries(self):
        self.assertEqual(self.client.get('/api/threshold').get_json(), {'threshold': 2})
        self.assertEqual(self.client.get('/api/balance').get_json(), {'balance': 10})
        self.assertEqual(self.client.get('/api/signers/1').get_json()['signer'], self.signers[1])
        self.assertEqual(self.client.get('/api/signers/5').status_code, 404)

        data = self.client.get('/api/signers').get_json()
        self.assertEqual(data['signers'], self.signers)
        self.assertEqual(data['count'], 3)

    def test_full_flow(self):
        """Submit, approve and execute over HTTP"""
        response = self._submit(self.signers[0])
        self.assertEqual(response.status_code, 201)
        tx_id = response.get_json()['id']
        self.assertEqual(tx_id, 0)

        response = self.client.post(f'/api/transactions/{tx_id}/approve', json={'caller': self.signers[1]})
        self.assertEqual(response.get_json()['approvals'], 1)

        response = self.client.get(f'/api/transactions/{tx_id}/approvals/{self.signers[1]}')
        self.assertTrue(response.get_json()['approved'])

        response = self.client.post(f'/api/transactions/{tx_id}/execute', json={})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()['error'], 'insufficient_approvals')

        self.client.post(f'/api/transactions/{tx_id}/approve', json={'caller': self.signers[0]})
        response = self.client.post(f'/api/transactions/{tx_id}/execute', json={'caller': self.other})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['balance'], 9)

        record = self.client.get(f'/api/transactions/{tx_id}').get_json()
        self.assertTrue(record['executed'])
        self.assertEqual(self.client.get('/api/transactions').get_json()['count'], 1)

        response = self.client.post(f'/api/transactions/{tx_id}/execute', json={})
        self.assertEqual(response.get_json()['error'], 'already_executed')

    def test_error_mapping(self):
        response = self._submit(self.other)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()['error'], 'not_authorized')
        self.assertEqual(self.wallet.transaction_count(), 0)

        self._submit(self.signers[0])
        self.client.post('/api/transactions/0/approve', json={'caller': self.signers[1]})
        response = self.client.post('/api/transactions/0/approve', json={'caller': self.signers[1]})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()['error'], 'duplicate_approval')

        response = self.client.get('/api/transactions/7')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'unknown_transaction')

        response = self.client.post('/api/transactions', json={'caller': self.signers[0]})
        self.assertEqual(response.status_code, 400)

    def test_transfer_failure_status(self):
        tx_id = self._submit(self.signers[0], amount=50).get_json()['id']
        self.client.post(f'/api/transactions/{tx_id}/approve', json={'caller': self.signers[0]})
        self.client.post(f'/api/transactions/{tx_id}/approve', json={'caller': self.signers[2]})

        response = self.client.post(f'/api/transactions/{tx_id}/execute', json={})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.get_json()['error'], 'transfer_failed')
        self.assertFalse(self.wallet.get_transaction(tx_id).executed)


if __name__ == '__main__':
    unittest.main()
