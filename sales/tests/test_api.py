from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from inventory.models import Product
from inventory.services import DatabasePolicySwitch
from inventory.tests.base import InventoryFixturesMixin
from sales.models import Sale


class SalesApiTests(InventoryFixturesMixin, APITestCase):

    def setUp(self):
        self.category = self.make_category()
        self.user = self.make_user('seller')
        self.client.force_authenticate(user=self.user)
        self.product, self.l1, self.l2 = self.two_lot_product()
        DatabasePolicySwitch().set_policy('FIFO')

    def post_sale(self, items, buyer_name='Jane'):
        return self.client.post(
            '/api/sales/sales/', {'buyer_name': buyer_name, 'items': items}, format='json'
        )

    def test_record_sale(self):
        response = self.post_sale([{'product': self.product.pk, 'quantity': 8}])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['total_amount'], '120.00')
        self.assertEqual(response.data['total_cost'], '86.00')
        self.assertEqual(response.data['gross_profit'], '34.00')
        self.assertEqual(response.data['seller_username'], 'seller')

        item = response.data['items'][0]
        self.assertEqual(item['product_code'], 'PRD-001')
        self.assertEqual(item['cost_price'], '10.7500')
        self.assertEqual(item['costing_policy'], 'FIFO')
        self.assertEqual(Product.objects.get(pk=self.product.pk).quantity, 2)

    def test_list_and_retrieve(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 1}])
        sale = Sale.objects.get()

        response = self.client.get('/api/sales/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

        response = self.client.get(f'/api/sales/sales/{sale.pk}/')
        self.assertEqual(response.data['sale_id'], sale.sale_id)

    def test_sales_are_immutable(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 1}])
        sale = Sale.objects.get()

        self.assertEqual(
            self.client.delete(f'/api/sales/sales/{sale.pk}/').status_code,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        )
        self.assertEqual(
            self.client.patch(f'/api/sales/sales/{sale.pk}/', {'buyer_name': 'X'}, format='json').status_code,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        )

    def test_empty_sale_is_rejected(self):
        response = self.post_sale([])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_insufficient_stock(self):
        response = self.post_sale([{'product': self.product.pk, 'quantity': 11}])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'insufficient_stock')
        self.assertFalse(Sale.objects.exists())

    def test_unknown_product(self):
        response = self.post_sale([{'product': 999999, 'quantity': 1}])

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'product_not_found')

    def test_ledger_drift_is_a_conflict(self):
        Product.objects.filter(pk=self.product.pk).update(quantity=20)

        response = self.post_sale([{'product': self.product.pk, 'quantity': 12}])

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'insufficient_inventory_history')
        self.assertEqual(self.remaining(self.l1, self.l2), [5, 5])

    def test_profit_summary(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 8, 'unit_price': '20.00'}])

        response = self.client.get('/api/sales/profit/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_revenue'], '160.00')
        self.assertEqual(response.data['total_cost'], '86.00')
        self.assertEqual(response.data['gross_profit'], '74.00')
        self.assertEqual(response.data['profit_margin'], '46.25')
        self.assertEqual(response.data['units_sold'], 8)

    def test_profit_summary_date_filters(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 1}])

        response = self.client.get('/api/sales/profit/', {'start': '2000-01-01', 'end': '2000-12-31'})
        self.assertEqual(response.data['units_sold'], 0)

        response = self.client.get('/api/sales/profit/', {'start': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_profit_summary_for_one_seller(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 2}])

        mine = self.client.get('/api/sales/profit/', {'seller': self.user.pk})
        nobody = self.client.get('/api/sales/profit/', {'seller': self.user.pk + 1000})
        bad = self.client.get('/api/sales/profit/', {'seller': 'me'})

        self.assertEqual(mine.data['units_sold'], 2)
        self.assertEqual(nobody.data['units_sold'], 0)
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)

    def test_seller_performance(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 8}])

        response = self.client.get('/api/sales/profit/by-seller/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        [row] = response.data
        self.assertEqual(row['seller_username'], 'seller')
        self.assertEqual(row['total_sales'], 1)
        self.assertEqual(row['total_revenue'], '120.00')
        self.assertEqual(row['gross_profit'], '34.00')
        self.assertEqual(row['average_sale_value'], '120.00')

    def test_cost_basis_survives_policy_switch(self):
        self.post_sale([{'product': self.product.pk, 'quantity': 8}])
        before = self.client.get('/api/sales/profit/').data

        self.client.put('/api/inventory/costing-policy/', {'policy': 'LIFO'}, format='json')

        self.assertEqual(self.client.get('/api/sales/profit/').data, before)
        self.assertEqual(Sale.objects.get().total_cost, Decimal('86.00'))
