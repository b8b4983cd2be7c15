"""
API tests for products, lots, valuation and the costing policy endpoint.
"""
from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from inventory.models import Category, CostingSetting, InventoryLot, Product
from inventory.services import DatabasePolicySwitch

from .base import InventoryFixturesMixin


class InventoryApiTests(InventoryFixturesMixin, APITestCase):

    def setUp(self):
        self.category = self.make_category()
        self.user = self.make_user('manager')
        self.client.force_authenticate(user=self.user)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/inventory/products/')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_create_product_records_opening_lot(self):
        response = self.client.post('/api/inventory/products/', {
            'product_code': 'PRD-API',
            'name': 'Infinix Hot',
            'category': self.category.pk,
            'quantity': 12,
            'buying_price': '80.00',
            'selling_price': '120.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['quantity'], 12)
        self.assertEqual(response.data['owner'], self.user.pk)

        product = Product.objects.get(product_code='PRD-API')
        lot = product.lots.get()
        self.assertEqual(lot.unit_cost, Decimal('80.00'))
        self.assertEqual(lot.received_by, self.user)

    def test_create_product_rejects_negative_selling_price(self):
        response = self.client.post('/api/inventory/products/', {
            'product_code': 'PRD-NEG',
            'name': 'Broken',
            'category': self.category.pk,
            'quantity': 1,
            'buying_price': '10.00',
            'selling_price': '-5.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_cost')
        self.assertFalse(Product.objects.filter(product_code='PRD-NEG').exists())

    def test_quantity_cannot_be_edited_directly(self):
        product, _, _ = self.two_lot_product()

        response = self.client.patch(
            f'/api/inventory/products/{product.pk}/', {'quantity': 50}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(
            f'/api/inventory/products/{product.pk}/', {'selling_price': '18.00'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Product.objects.get(pk=product.pk).quantity, 10)

    def test_category_with_products_cannot_be_deleted(self):
        self.two_lot_product()

        response = self.client.delete(f'/api/inventory/categories/{self.category.pk}/')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'protected')
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())

    def test_empty_category_can_be_deleted(self):
        empty = self.make_category('Spare Parts')

        response = self.client.delete(f'/api/inventory/categories/{empty.pk}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Category.objects.filter(pk=empty.pk).exists())

    def test_products_cannot_be_deleted(self):
        product = self.make_product()
        response = self.client.delete(f'/api/inventory/products/{product.pk}/')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_restock(self):
        product, _, _ = self.two_lot_product()

        response = self.client.post(
            f'/api/inventory/products/{product.pk}/restock/',
            {'quantity': 4, 'unit_cost': '13.00', 'note': 'Supplier C'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['product']['quantity'], 14)
        self.assertEqual(response.data['lot']['unit_cost'], '13.00')
        self.assertEqual(response.data['lot']['remaining_quantity'], 4)
        self.assertLedgerMatchesStock(product)

    def test_restock_rejects_bad_quantity(self):
        product = self.make_product()
        response = self.client.post(
            f'/api/inventory/products/{product.pk}/restock/', {'quantity': 0}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(product.lots.exists())

    def test_restock_rejects_sub_cent_cost(self):
        product = self.make_product()
        response = self.client.post(
            f'/api/inventory/products/{product.pk}/restock/',
            {'quantity': 1, 'unit_cost': '1.005'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_lot_listing_filters(self):
        product, l1, l2 = self.two_lot_product()
        InventoryLot.objects.filter(pk=l1.pk).update(remaining_quantity=0)

        response = self.client.get('/api/inventory/lots/', {'product': product.pk, 'open': '1'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [l2.pk])

    def test_valuation(self):
        self.two_lot_product()
        DatabasePolicySwitch().set_policy('FIFO')

        response = self.client.get('/api/inventory/valuation/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['policy'], 'FIFO')
        self.assertEqual(response.data['total_value'], '110.00')
        row = response.data['results'][0]
        self.assertEqual(row['total_value'], '110.00')
        self.assertEqual(row['averaged_unit_value'], '11.0000')
        self.assertEqual(row['policy_used'], 'FIFO')

    def test_valuation_grouped_by_category(self):
        self.two_lot_product()
        DatabasePolicySwitch().set_policy('AVERAGE')

        response = self.client.get('/api/inventory/valuation/', {'group_by': 'category'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['policy'], 'AVERAGE')
        self.assertEqual(response.data['results'][0]['product_count'], 1)

    def test_valuation_of_empty_inventory(self):
        DatabasePolicySwitch().set_policy('LIFO')
        response = self.client.get('/api/inventory/valuation/')

        self.assertEqual(response.data['results'], [])
        self.assertEqual(response.data['total_value'], '0.00')
        self.assertEqual(response.data['policy'], 'LIFO')

    def test_valuation_rejects_non_integer_filter(self):
        response = self.client.get('/api/inventory/valuation/', {'product': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_corrupt_policy_is_a_server_error(self):
        self.two_lot_product()
        CostingSetting.objects.create(pk=CostingSetting.SINGLETON_PK, policy='MEDIAN')

        response = self.client.get('/api/inventory/valuation/')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'unknown_policy')

    def test_costing_policy_endpoint(self):
        response = self.client.put('/api/inventory/costing-policy/', {'policy': 'LIFO'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['policy'], 'LIFO')

        response = self.client.get('/api/inventory/costing-policy/')
        self.assertEqual(response.data['policy'], 'LIFO')
        self.assertEqual(response.data['history'][0]['new_policy'], 'LIFO')
        self.assertEqual(response.data['history'][0]['changed_by_username'], 'manager')

    def test_costing_policy_endpoint_rejects_unknown(self):
        response = self.client.put('/api/inventory/costing-policy/', {'policy': 'MEDIAN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(CostingSetting.objects.exists())
